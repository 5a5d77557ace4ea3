"""
Mithaq Matching API Entry Point

Builds the oracle client, agent registry, dispatcher, store and matching
service once and wires them into the FastAPI app.

  uvicorn main:app --host 0.0.0.0 --port $PORT

Storage: InMemoryStore unless DATABASE_URL is set, in which case a
PostgresStore is connected (and its schema created) at startup.
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mithaq import __version__
from mithaq.agents.admin import router as agents_router
from mithaq.agents.dispatcher import AgentDispatcher, build_agent_registry
from mithaq.agents.oracle import OracleClient, TextOracle
from mithaq.matching.admin import router as matching_router
from mithaq.matching.service import MatchingService
from mithaq.storage.base import MatchStore
from mithaq.storage.memory import InMemoryStore

# ===== CONFIGURATION =====
DATABASE_URL = os.getenv("DATABASE_URL")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

logger = logging.getLogger(__name__)


def create_app(
    store: Optional[MatchStore] = None,
    oracle: Optional[TextOracle] = None,
    database_url: Optional[str] = None,
) -> FastAPI:
    oracle = oracle or OracleClient()
    dispatcher = AgentDispatcher(build_agent_registry(oracle))
    database_url = database_url if database_url is not None else DATABASE_URL
    connect_postgres = store is None and bool(database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if connect_postgres:
            from mithaq.storage.postgres import PostgresStore

            pg_store = await PostgresStore.connect(database_url)
            await pg_store.init_schema()
            app.state.store = pg_store
            app.state.matching_service = MatchingService(pg_store, dispatcher)
        yield
        await app.state.store.close()
        await oracle.aclose()
        logger.info("Mithaq API shut down")

    app = FastAPI(
        title="Mithaq Matching API",
        description="Compatibility scoring, guarded matching and capability agents",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    store = store or InMemoryStore()
    app.state.oracle = oracle
    app.state.dispatcher = dispatcher
    app.state.store = store
    app.state.matching_service = MatchingService(store, dispatcher)

    app.include_router(matching_router)
    app.include_router(agents_router)

    @app.get("/")
    def root():
        return {"service": "mithaq", "version": __version__, "status": "ok"}

    @app.get("/health")
    def health():
        return {
            "status": "ok",
            "storage": "postgres" if connect_postgres else type(store).__name__,
        }

    return app


logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app()


# For local development
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
