from pydantic_settings import BaseSettings
from typing import Optional
import os


class Settings(BaseSettings):
    # Application settings
    APP_NAME: str = "Gerenciamento de Usuários"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # Store; an empty URL leaves the proxy in diagnostic (503) mode
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/usuarios.db"

    # API settings
    API_PREFIX: str = "/api"
    SESSION_HEADER: str = "x-session-token"

    # External portal that issues session tokens
    PORTAL_URL: str = "https://ir-comercio-portal-zcan.onrender.com"

    # CORS settings
    BACKEND_CORS_ORIGINS: list[str] = ["*"]

    # Password hashing
    BCRYPT_ROUNDS: int = 10

    # Client settings
    API_BASE_URL: str = "http://localhost:3000"
    POLL_INTERVAL: float = 30.0
    LIVENESS_INTERVAL: float = 15.0
    LIVENESS_TIMEOUT: float = 10.0
    ALERT_CHECK_INTERVAL: float = 30.0
    REQUEST_TIMEOUT: float = 30.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True

    @property
    def database_path(self) -> Optional[str]:
        """Filesystem path of the sqlite store, None when not configured"""
        prefix = "sqlite+aiosqlite:///"
        if not self.DATABASE_URL or not self.DATABASE_URL.startswith(prefix):
            return None
        return self.DATABASE_URL[len(prefix):]


settings = Settings()

# Create the store directory
if settings.database_path and settings.database_path != ":memory:":
    os.makedirs(os.path.dirname(os.path.abspath(settings.database_path)), exist_ok=True)
