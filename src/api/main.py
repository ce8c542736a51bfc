"""
FastAPI application factory.
Creates the webhook app, wires the conversation engine and registers routers.
"""
import asyncio
import sys
from pathlib import Path
from contextlib import asynccontextmanager
from fastapi import FastAPI

# Ensure src/ is on the path
_src_dir = str(Path(__file__).parent.parent)
if _src_dir not in sys.path:
    sys.path.insert(0, _src_dir)


def build_engine():
    """Create the production collaborators and the dispatcher around them."""
    import config
    from bot.notification_engine import NotificationEngine
    from bot.telegram_media import TelegramMediaClient
    from conversation.dispatcher import EventDispatcher
    from ocr.ocr_engine import OCREngine
    from storage.host_db import HostDB

    host_db = HostDB(db_path=config.HOST_DB_PATH)
    notifier = NotificationEngine()
    dispatcher = EventDispatcher.build(
        host_db=host_db,
        media_client=TelegramMediaClient(bot=notifier.bot),
        ocr_engine=OCREngine(),
        notifier=notifier,
    )
    return host_db, notifier, dispatcher


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown logic for the FastAPI app."""
    import config

    print(f"[API] Initializing webhook server on port {config.API_PORT}")

    if getattr(app.state, "dispatcher", None) is None:
        host_db, notifier, dispatcher = build_engine()
        app.state.host_db = host_db
        app.state.notifier = notifier
        app.state.dispatcher = dispatcher
        print(f"[API] Host database: {config.HOST_DB_PATH}")

    print(f"[API] Telegram webhook: {config.WEBHOOK_PATH}")

    yield

    pending = list(app.state.background_tasks)
    if pending:
        print(f"[API] Waiting for {len(pending)} in-flight update(s)")
        await asyncio.gather(*pending, return_exceptions=True)
    notifier = getattr(app.state, "notifier", None)
    if notifier is not None:
        await notifier.drain()

    print("[API] Shutting down API server")


def create_app(dispatcher=None, host_db=None, notifier=None, webhook_secret: str = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Collaborators passed in are used as-is; otherwise they are built at startup.
    """
    import config

    app = FastAPI(
        title="Live Session Reporter",
        description="Telegram webhook for LIVE session GMV reports.",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.dispatcher = dispatcher
    app.state.host_db = host_db
    app.state.notifier = notifier
    app.state.background_tasks = set()
    app.state.webhook_secret = config.WEBHOOK_SECRET_TOKEN if webhook_secret is None else webhook_secret

    # Register routers
    from api.routes.webhook_routes import router as webhook_router
    from api.routes.health_routes import router as health_router

    app.include_router(webhook_router, prefix=config.WEBHOOK_PATH, tags=["Webhook"])
    app.include_router(health_router, prefix="/health", tags=["Health"])

    from api.middleware.request_logger import RequestLoggerMiddleware
    app.add_middleware(RequestLoggerMiddleware)

    @app.get("/", tags=["Root"])
    async def root():
        return {
            "service": "Live Session Reporter",
            "version": "1.0.0",
            "webhook": config.WEBHOOK_PATH,
            "health": "/health",
        }

    return app
