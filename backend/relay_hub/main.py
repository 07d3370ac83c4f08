from contextlib import asynccontextmanager

import socketio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from relay_hub import __version__
from relay_hub.api import health, notify
from relay_hub.core.config import settings
from relay_hub.core.logging import configure_logging, api_logger
from relay_hub.core.middleware import RequestContextMiddleware, global_exception_handler
from relay_hub.realtime.socket import sio


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    api_logger.info(f"{settings.APP_NAME} starting", env=settings.APP_ENV, port=settings.PORT)
    yield
    api_logger.info(f"{settings.APP_NAME} stopped")


api = FastAPI(
    title="Relay Hub API",
    description="Presence tracking and payload relay over Socket.IO",
    version=__version__,
    lifespan=lifespan,
)

api.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)
api.add_middleware(RequestContextMiddleware)
api.add_exception_handler(Exception, global_exception_handler)

api.include_router(notify.router, tags=["Notify"])
api.include_router(health.router, tags=["Health"])

# Socket.IO sits in front of the HTTP app and serves both long-polling and
# WebSocket upgrades under SOCKETIO_PATH; everything else falls through.
app = socketio.ASGIApp(
    sio,
    other_asgi_app=api,
    socketio_path=settings.SOCKETIO_PATH,
)
