import json
from typing import Annotated, List, Union
from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

class Settings(BaseSettings):
    PROJECT_NAME: str = "SafePortal"
    ENVIRONMENT: str = "development"
    API_V1_STR: str = "/api/v1"
    FUNCTIONS_STR: str = "/functions/v1"

    # Security
    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    # "*", "https://a.example,https://b.example" or a JSON list
    CORS_ORIGINS: Annotated[List[str], NoDecode] = ["*"]

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        if isinstance(v, str):
            v = v.strip()
            if v.startswith("["):
                return json.loads(v)
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, list):
            return v
        raise ValueError(v)

    # Database - postgresql+asyncpg://... in production, sqlite+aiosqlite://... locally
    DATABASE_URL: str

    # Bootstrap administrator created by init_db (optional)
    FIRST_ADMIN_EMAIL: str = ""
    FIRST_ADMIN_PASSWORD: str = ""

    # Reverse geocoding (Nominatim)
    GEOCODING_URL: str = "https://nominatim.openstreetmap.org/reverse"
    GEOCODING_USER_AGENT: str = "safeportal/1.0"
    GEOCODING_TIMEOUT_SECONDS: float = 3.0

    # Email notifications (Resend)
    RESEND_API_KEY: str = ""
    RESEND_API_URL: str = "https://api.resend.com/emails"
    NOTIFY_FROM_EMAIL: str = ""
    PORTAL_NAME: str = "Women's safety portal"
    EMAIL_TIMEOUT_SECONDS: float = 10.0

    # Notification outbox
    NOTIFY_MAX_ATTEMPTS: int = 5
    NOTIFY_RETRY_BASE_SECONDS: float = 30.0
    OUTBOX_POLL_INTERVAL_SECONDS: float = 15.0
    OUTBOX_BATCH_SIZE: int = 20

    # Admin dashboard
    ADMIN_INCIDENT_LIMIT: int = 50

    # Logging
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file="safeportal.env",
        env_file_encoding="utf-8"
    )

settings = Settings()
