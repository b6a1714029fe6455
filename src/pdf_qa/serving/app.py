"""FastAPI application exposing the question-answering service as a REST API."""

from __future__ import annotations

import logging
import threading
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from pdf_qa import __version__
from pdf_qa.agent.service import QueryService
from pdf_qa.config import settings
from pdf_qa.errors import ValidationError
from pdf_qa.retrieval.base import VectorStoreBase
from pdf_qa.retrieval.retriever import get_retriever
from pdf_qa.serving.sessions import SessionStore

logger = logging.getLogger(__name__)

QUESTION_REQUIRED = "Question is required"
PROCESSING_FAILED = "Failed to process question"


# ── Request / Response schemas ────────────────────────────────────────
class AskRequest(BaseModel):
    """Incoming question; ``session_id`` continues an earlier conversation."""

    question: str | None = None
    session_id: str | None = None


class AskResponse(BaseModel):
    """Answer plus the session id to send with the next follow-up."""

    answer: str
    session_id: str


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    status: str


def _get_service(request: Request) -> QueryService:
    state = request.app.state
    if state.service is None:
        with state.service_lock:
            if state.service is None:
                settings.validate_required()
                state.service = QueryService()
                logger.info("Query service ready")
    return state.service


def _get_vector_store(request: Request) -> VectorStoreBase:
    store = request.app.state.vector_store
    if store is None:
        store = get_retriever().store
    return store


def create_app(
    service: QueryService | None = None,
    sessions: SessionStore | None = None,
    vector_store: VectorStoreBase | None = None,
) -> FastAPI:
    """Build the FastAPI app.

    Parameters
    ----------
    service:
        Query service to use.  When *None* it is built from settings at
        start-up, after checking that every required credential is set.
    sessions:
        Session store; defaults to one sized from settings.
    vector_store:
        Backend checked by ``GET /health``; defaults to the one the
        process-wide retriever queries.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if app.state.service is None:
            settings.validate_required()
            app.state.service = QueryService()
            logger.info("Query service ready")
        yield

    app = FastAPI(
        title="PDF QA API",
        version=__version__,
        description="Conversational question answering over an indexed PDF corpus.",
        lifespan=lifespan,
    )
    app.state.service = service
    app.state.service_lock = threading.Lock()
    app.state.vector_store = vector_store
    # An empty SessionStore is falsy; compare against None.
    if sessions is None:
        sessions = SessionStore(
            max_sessions=settings.max_sessions,
            ttl_seconds=settings.session_ttl_seconds,
        )
    app.state.sessions = sessions
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def _bad_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": QUESTION_REQUIRED})

    # ── Routes ────────────────────────────────────────────────────────
    @app.get("/health", response_model=HealthResponse, responses={503: {"model": HealthResponse}})
    def health(request: Request) -> HealthResponse | JSONResponse:
        """Readiness probe: reports 503 while the vector store is unreachable."""
        try:
            healthy = _get_vector_store(request).health_check()
        except Exception:
            logger.warning("Vector store unavailable for health check", exc_info=True)
            healthy = False
        if not healthy:
            return JSONResponse(status_code=503, content={"status": "unavailable"})
        return HealthResponse(status="ok")

    @app.post(
        "/ask",
        response_model=AskResponse,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    )
    def ask(body: AskRequest, request: Request) -> AskResponse | JSONResponse:
        """Answer a question, continuing the session named in the body."""
        if body.question is None or not body.question.strip():
            return JSONResponse(status_code=400, content={"error": QUESTION_REQUIRED})

        session_id, history = request.app.state.sessions.get_or_create(body.session_id)
        try:
            answer = _get_service(request).answer(history, body.question)
        except ValidationError as exc:
            return JSONResponse(status_code=400, content={"error": str(exc)})
        except Exception:
            logger.exception("Error processing question")
            return JSONResponse(status_code=500, content={"error": PROCESSING_FAILED})
        return AskResponse(answer=answer, session_id=session_id)

    @app.delete("/sessions/{session_id}", status_code=204)
    def end_session(session_id: str, request: Request) -> None:
        """Forget a conversation."""
        request.app.state.sessions.evict(session_id)

    return app


app = create_app()


def main() -> None:
    import uvicorn

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host=settings.server_host, port=settings.server_port)


if __name__ == "__main__":
    main()
