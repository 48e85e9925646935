from __future__ import annotations

import argparse
from collections.abc import Iterable
from pathlib import Path
from typing import Annotated

import uvicorn
from fastapi import FastAPI, HTTPException, Query, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from .api import build_api
from .config import load_config
from .models import SessionReport, TermCount, TrendConfig
from .service import LineResult, SessionClosedError

LinesPayload = Annotated[list[str], Field(min_length=1)]


class TextEvent(BaseModel):
    """Already-parsed event with its logical timestamp in seconds."""

    text: str
    timestamp: int = Field(..., ge=0)


EventsPayload = Annotated[list[TextEvent], Field(min_length=1)]


class IngestLinesRequest(BaseModel):
    """Payload of raw ``[HH:MM:SS] text`` lines."""

    lines: LinesPayload


class IngestEventsRequest(BaseModel):
    """Payload of structured events."""

    events: EventsPayload


class IngestResponse(BaseModel):
    """Response returned after ingestion."""

    ingested: int
    rejected: int = 0
    diagnostics: list[str] = Field(default_factory=list)


def _summarize(results: list[LineResult]) -> IngestResponse:
    diagnostics = [result.error for result in results if result.error is not None]
    return IngestResponse(
        ingested=sum(1 for result in results if result.ok and result.kind == "event"),
        rejected=len(diagnostics),
        diagnostics=diagnostics,
    )


def create_app(
    config: TrendConfig | None = None, *, cors_origins: Iterable[str] | None = None
) -> FastAPI:
    """Construct a FastAPI app backed by TrendAPI."""

    api = build_api(config)
    app = FastAPI(title="Trending Terms", version="0.1.0")
    app.state.api = api

    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(cors_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    def _closed() -> HTTPException:
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail="session already flushed")

    @app.get("/healthz", status_code=status.HTTP_200_OK)
    def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/ingest", response_model=IngestResponse, status_code=status.HTTP_202_ACCEPTED)
    def ingest(payload: IngestLinesRequest) -> IngestResponse:
        try:
            results = app.state.api.ingest_lines(payload.lines)
        except SessionClosedError as exc:
            raise _closed() from exc
        return _summarize(results)

    @app.post("/events", response_model=IngestResponse, status_code=status.HTTP_202_ACCEPTED)
    def events(payload: IngestEventsRequest) -> IngestResponse:
        try:
            app.state.api.ingest_events((event.text, event.timestamp) for event in payload.events)
        except SessionClosedError as exc:
            raise _closed() from exc
        return IngestResponse(ingested=len(payload.events))

    @app.get("/top", response_model=list[TermCount])
    def top(k: int | None = Query(default=None, ge=0, le=10_000)) -> list[TermCount]:
        return app.state.api.top_k(k)

    @app.get("/stats", response_model=SessionReport)
    def stats() -> SessionReport:
        return app.state.api.report()

    @app.post("/flush", response_model=SessionReport)
    def flush() -> SessionReport:
        try:
            return app.state.api.finish()
        except SessionClosedError as exc:
            raise _closed() from exc

    return app


def serve(
    config: TrendConfig | None = None,
    *,
    host: str = "127.0.0.1",
    port: int = 8000,
    cors_origins: Iterable[str] | None = None,
) -> None:
    app = create_app(config=config, cors_origins=cors_origins)
    uvicorn.run(app, host=host, port=port, log_level="info")


def run(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Run the trending-terms HTTP service.")
    parser.add_argument("--host", default="127.0.0.1", help="Host interface to bind.")
    parser.add_argument("--port", type=int, default=8000, help="TCP port for the service.")
    parser.add_argument(
        "--config", type=Path, default=None, help="Optional key=value configuration file."
    )
    parser.add_argument(
        "--window-size", type=int, default=None, help="Window size in seconds."
    )
    parser.add_argument(
        "--allowed-lateness", type=int, default=None, help="Allowed lateness in seconds."
    )
    parser.add_argument(
        "--capacity", type=int, default=None, help="Reorder buffer capacity."
    )
    parser.add_argument(
        "--no-late-handling",
        action="store_true",
        help="Assume ordered input and count entries as they arrive.",
    )
    parser.add_argument(
        "--stopwords", type=Path, default=None, help="Newline-delimited stopword list."
    )
    parser.add_argument(
        "--cors-origin",
        action="append",
        dest="cors_origins",
        default=None,
        help="Optional CORS origin (repeatable).",
    )
    args = parser.parse_args(argv)

    config = load_config(
        args.config,
        window_size=args.window_size,
        allowed_lateness=args.allowed_lateness,
        buffer_capacity=args.capacity,
        late_handling=False if args.no_late_handling else None,
        stopwords_path=str(args.stopwords) if args.stopwords else None,
    )
    serve(config, host=args.host, port=args.port, cors_origins=args.cors_origins)


app = create_app()
