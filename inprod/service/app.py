"""FastAPI application exposing inprod analysis over HTTP."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Optional

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..analyzer import ReadinessAnalyzer
from ..corpus import FileCorpus
from ..fixes import FixSelection
from ..models import RepoFile
from ..repo_scanner import RepoScanner
from ..summary import format_analysis_summary


class FilePayload(BaseModel):
    path: str
    content: str = ""
    size: Optional[int] = None


class AnalyzeRequest(BaseModel):
    repo_url: str = ""
    files: List[FilePayload] = Field(default_factory=list)
    path: Optional[str] = None


class AnalyzeResponse(BaseModel):
    analysis: Dict[str, Any]
    capacity: Dict[str, Any]
    summary: str


class FixesRequest(AnalyzeRequest):
    gap_ids: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    instant_only: bool = False


class FixesResponse(BaseModel):
    groups: List[Dict[str, Any]]
    plan: Dict[str, Any]


class HealthResponse(BaseModel):
    status: str


class AnalysisFailed(Exception):
    """An analysis produced a failed result rather than a report."""


def _default_analyzer() -> ReadinessAnalyzer:
    return ReadinessAnalyzer()


def _corpus_for(payload: AnalyzeRequest) -> FileCorpus:
    if payload.path and not payload.files:
        return RepoScanner().scan(payload.path)
    return FileCorpus(
        RepoFile(
            path=item.path,
            content=item.content,
            size=item.size if item.size is not None else len(item.content.encode("utf-8")),
        )
        for item in payload.files
    )


async def _in_executor(func: Callable[[], Any]) -> Any:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, func)


def create_app(
    analyzer_factory: Callable[[], ReadinessAnalyzer] = _default_analyzer,
) -> FastAPI:
    """Create the FastAPI application exposing analysis operations."""

    app = FastAPI(title="inprod", version="1.0.0")

    async def get_analyzer() -> ReadinessAnalyzer:
        return analyzer_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/analyze", response_model=AnalyzeResponse)
    async def analyze(
        payload: AnalyzeRequest,
        analyzer: ReadinessAnalyzer = Depends(get_analyzer),
    ) -> AnalyzeResponse:
        def _run() -> AnalyzeResponse:
            result = analyzer.analyze_repository(payload.repo_url, _corpus_for(payload))
            if not result.ok or result.analysis is None or result.capacity is None:
                raise AnalysisFailed(result.error or "analysis failed")
            return AnalyzeResponse(
                analysis=result.analysis.to_dict(),
                capacity=result.capacity.to_dict(),
                summary=format_analysis_summary(result.analysis, result.capacity),
            )

        return await _in_executor(_run)

    @app.post("/fixes", response_model=FixesResponse)
    async def fixes(
        payload: FixesRequest,
        analyzer: ReadinessAnalyzer = Depends(get_analyzer),
    ) -> FixesResponse:
        def _run() -> FixesResponse:
            result = analyzer.analyze_repository(payload.repo_url, _corpus_for(payload))
            if not result.ok or result.analysis is None:
                raise AnalysisFailed(result.error or "analysis failed")
            selection = FixSelection(
                gap_ids=tuple(payload.gap_ids),
                categories=tuple(payload.categories),
                instant_only=payload.instant_only,
            )
            groups, plan = analyzer.plan_fixes(result.analysis, selection)
            return FixesResponse(groups=[group.to_dict() for group in groups], plan=plan.to_dict())

        return await _in_executor(_run)

    @app.exception_handler(FileNotFoundError)
    async def file_not_found_handler(_: Any, exc: FileNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(NotADirectoryError)
    async def not_a_directory_handler(_: Any, exc: NotADirectoryError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(AnalysisFailed)
    async def analysis_failed_handler(_: Any, exc: AnalysisFailed) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    return app


def run_service(host: str = "127.0.0.1", port: int = 8000) -> None:  # pragma: no cover - integration path
    import uvicorn

    uvicorn.run(create_app(), host=host, port=port)
