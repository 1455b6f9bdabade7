"""FastAPI app factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.editor.config import EditorConfig
from app.editor.session import SessionRegistry
from app.persistence.client import HttpDocumentStore
from app.persistence.store import DocumentStore, InMemoryDocumentStore

load_dotenv()

logging.basicConfig(
    level=getattr(logging, settings.visualedit_log_level.upper(), logging.DEBUG),
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)
logger = logging.getLogger(__name__)


def _default_store() -> DocumentStore:
    if settings.persistence_base_url:
        return HttpDocumentStore(
            settings.persistence_base_url,
            content_field=settings.persistence_content_field,
            timeout=settings.persistence_timeout_s,
        )
    logger.info("No persistence URL configured, documents are kept in memory")
    return InMemoryDocumentStore(content_field=settings.persistence_content_field)


def create_app(store: DocumentStore | None = None, config: EditorConfig | None = None) -> FastAPI:
    store = store or _default_store()
    sessions = SessionRegistry(
        store,
        config=config or EditorConfig.from_settings(settings),
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        # Flush and close whatever is still open
        await sessions.close_all()
        if isinstance(store, HttpDocumentStore):
            await store.aclose()

    app = FastAPI(
        title="VisualEdit",
        description="Visual JSX editor — source-to-source mutations with coalesced autosave",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.sessions = sessions

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from app.api.router import api_router

    app.include_router(api_router)

    return app


app = create_app()
