from pydantic_settings import BaseSettings
from typing import List
import os


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "relay-hub"
    APP_ENV: str = os.getenv("APP_ENV", "development")

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 4000
    LOG_LEVEL: str = "INFO"

    # Socket.IO
    SOCKETIO_PATH: str = "socket.io"

    # Relay behaviour
    ECHO_SENT_MESSAGES: bool = False
    PRESENCE_ANNOUNCE_EVERY_REGISTRATION: bool = True
    DEBUG_STATUS_ENABLED: bool = True

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    class Config:
        env_file = ".env"

settings = Settings()
