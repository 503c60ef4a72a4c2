"""
Ollama Chat Backend
Main FastAPI application for chat sessions over locally hosted Ollama servers.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.auth import router as auth_router
from .api.chats import router as chats_router
from .api.file_ai import router as file_ai_router
from .api.files import router as files_router
from .api.messages import router as messages_router
from .api.servers import router as servers_router
from .api.share import router as share_router
from .api.votes import router as votes_router
from .config import Settings, get_settings
from .errors import ChatBackendError
from .services.container import build_services
from .services.servers import bootstrap_default_server

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager for startup and shutdown events."""
        logger.info("Starting Ollama Chat Backend...")
        services = build_services(settings)
        services.database.create_all()
        bootstrap_default_server(services.servers, settings.ollama_base_url)
        if settings.create_default_user:
            services.auth.create_default_user()
        app.state.services = services

        monitor_task = None
        if settings.enable_health_monitor:
            monitor_task = asyncio.create_task(services.monitor.run_forever())

        logger.info("Ollama Chat Backend initialized successfully")

        yield

        # Shutdown
        if monitor_task is not None:
            monitor_task.cancel()
            try:
                await monitor_task
            except asyncio.CancelledError:
                pass
        services.close()
        app.state.services = None
        logger.info("Ollama Chat Backend shutdown complete")

    app = FastAPI(
        title="Ollama Chat API",
        description="Chat sessions, document-grounded prompting and sharing over Ollama servers",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ChatBackendError)
    async def chat_backend_error_handler(request: Request, exc: ChatBackendError):
        if exc.status_code >= 500:
            logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    # Include routers
    app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
    app.include_router(chats_router, prefix="/api/chat", tags=["chat"])
    app.include_router(messages_router, prefix="/api/message", tags=["messages"])
    app.include_router(file_ai_router, prefix="/api/files/ai", tags=["file-ai"])
    app.include_router(files_router, prefix="/api/files", tags=["files"])
    app.include_router(votes_router, prefix="/api/vote", tags=["votes"])
    app.include_router(share_router, prefix="/api/share", tags=["share"])
    app.include_router(servers_router, prefix="/api/server", tags=["servers"])

    @app.get("/")
    async def root():
        """Root endpoint with basic info."""
        return {
            "message": "Ollama Chat API",
            "version": "1.0.0",
            "status": "running"
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "service": "chat-backend"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "chat_backend.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
