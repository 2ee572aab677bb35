import os
import sys
import logging

# Ensure this directory is in the path for uvicorn and other runners
current_dir = os.path.dirname(os.path.abspath(__file__))
if current_dir not in sys.path:
    sys.path.append(current_dir)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import APP_NAME
from database import SessionLocal, init_db
from services.cache_service import ResponseCache
from services.llm_router import LLMRouter
from services.storage_service import ChangeFeed, KeyValueStore, SQLKeyValueStore

from routes.journal_routes import router as journal_router
from routes.analysis_routes import router as analysis_router
from routes.snapshot_routes import router as snapshot_router
from routes.report_routes import router as report_router

logger = logging.getLogger(__name__)


def create_app(kv_store: KeyValueStore | None = None, llm_router: LLMRouter | None = None) -> FastAPI:
    """Build the app with one store, change feed and LLM router per process."""
    app = FastAPI(title=APP_NAME)

    if kv_store is None:
        init_db()
        kv_store = SQLKeyValueStore(SessionLocal)

    app.state.kv_store = kv_store
    app.state.change_feed = ChangeFeed()
    app.state.llm_router = llm_router or LLMRouter(cache=ResponseCache())

    if not app.state.llm_router.has_credentials:
        logger.info("No LLM API keys configured; analyses will use local scoring only")

    @app.get("/api/v1/health-check")
    async def health():
        return {"status": "ok", "message": "Backend is alive!"}

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(journal_router)
    app.include_router(analysis_router)
    app.include_router(snapshot_router)
    app.include_router(report_router)
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
