"""Technology-stack detection."""

from .detector import TechStackDetector
from .signatures import SIGNATURES, Signature

__all__ = ["SIGNATURES", "Signature", "TechStackDetector"]
