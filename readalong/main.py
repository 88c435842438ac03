# main.py
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from readalong import config
from readalong.controllers import rooms
from readalong.controllers.socket_instance import janitor, registry, relay, sio
from readalong.controllers.socket_manager import register_handlers

import socketio

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    janitor.start()
    yield
    await janitor.stop()
    logger.info("Presence janitor stopped")


# Initialize FastAPI app
app = FastAPI(lifespan=lifespan)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.state.registry = registry

# Routers
app.include_router(rooms.router, prefix="/api")

# Socket events
register_handlers(sio, relay)


@app.get("/ping")
async def ping():
    return {"message": "pong"}

# Wrap FastAPI with SocketIO
socket_app = socketio.ASGIApp(sio, other_asgi_app=app)
