"""FastAPI application serving one in-memory conversation graph."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from promptree.config import get_settings
from promptree.sdk.generation import build_generator
from promptree.session import ConversationSession
from server.graph_routes import router as graph_router

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("promptree.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the session on startup; the graph is never persisted."""
    app.state.session = ConversationSession(
        generate=build_generator(settings),
        response_count=settings.response_count,
    )
    logger.info("session ready (provider=%s)", settings.provider)
    yield


app = FastAPI(
    title="promptree API",
    description="API server for editing a branching tree of prompts and responses",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(graph_router, prefix="/api")


@app.get("/")
def root():
    """Health check endpoint."""
    return {
        "status": "ok",
        "version": "0.1.0",
        "provider": settings.provider,
        "endpoints": {
            "graph": "/api/graph",
            "prompts": "/api/prompts",
            "export_json": "/api/export/json",
            "export_tree": "/api/export/tree",
            "import": "/api/import",
        },
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
