from pydantic_settings import BaseSettings
from typing import List, Any
import json
from pathlib import Path


def parse_cors_origins(v: Any) -> List[str]:
    """Parse CORS origins from string or list"""
    if isinstance(v, list):
        return v
    if isinstance(v, str):
        # Try JSON parsing first
        if v.startswith('['):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                pass
        # Fall back to comma-separated
        return [origin.strip() for origin in v.split(',') if origin.strip()]
    return []


class Settings(BaseSettings):
    """Application settings - all configurable via environment variables"""

    # ==========================================
    # Application
    # ==========================================
    APP_NAME: str = "ThesisHub"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    API_VERSION: str = "v1"

    # Server Configuration
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 8000

    # ==========================================
    # Database
    # ==========================================
    DATABASE_URL: str
    DB_ECHO: bool = False
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800  # 30 minutes

    # ==========================================
    # Identity provider (external token issuer)
    # ==========================================
    IDENTITY_JWT_SECRET: str
    IDENTITY_JWT_ALGORITHM: str = "HS256"
    IDENTITY_AUDIENCE: str = ""  # Empty disables the audience check
    IDENTITY_ISSUER: str = ""  # Empty disables the issuer check
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440  # Locally minted tokens only

    # ==========================================
    # Object storage (project PDFs)
    # ==========================================
    STORAGE_MODE: str = "local"  # "local", "s3", or "minio"
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    AWS_REGION: str = "us-east-1"
    S3_BUCKET_NAME: str = "thesishub-projects"
    MINIO_ENDPOINT: str = "localhost:9000"
    LOCAL_STORAGE_PATH: str = "./storage"
    PUBLIC_FILES_BASE_URL: str = "/files"
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10MB

    # ==========================================
    # Academic rules
    # ==========================================
    STUDENT_EMAIL_DOMAIN: str = "ugrad.iiuc.ac.bd"
    SUPERVISOR_EMAIL_DOMAIN: str = "iiuc.ac.bd"
    ABSTRACT_MIN_CHARS: int = 100
    ABSTRACT_MAX_CHARS: int = 5000
    RECENT_VIEWS_LIMIT: int = 20

    # ==========================================
    # CORS (stored as comma-separated string, parsed to list)
    # ==========================================
    CORS_ORIGINS_STR: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"

    @property
    def CORS_ORIGINS(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        return parse_cors_origins(self.CORS_ORIGINS_STR)

    # ==========================================
    # Logging
    # ==========================================
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/app.log"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        if self.LOG_FILE:
            Path(self.LOG_FILE).parent.mkdir(exist_ok=True, parents=True)

    @property
    def BASE_DIR(self) -> Path:
        return Path(__file__).resolve().parent.parent.parent

    @property
    def STORAGE_DIR(self) -> Path:
        return Path(self.LOCAL_STORAGE_PATH)

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


# Create settings instance
settings = Settings()
