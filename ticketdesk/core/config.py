from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "local"
    APP_NAME: str = "Ticketdesk API"
    # Comma-separated origins for CORS (e.g. https://events.example.nl). If empty, uses localhost defaults.
    CORS_ORIGINS: str = ""
    LOG_LEVEL: str = "INFO"

    # Shared with the identity provider that signs user tokens
    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    DATABASE_URL: str

    @field_validator("DATABASE_URL", mode="after")
    @classmethod
    def normalize_database_url(cls, v: str) -> str:
        """Render and others give postgres://; SQLAlchemy expects postgresql+psycopg2://."""
        if v and v.startswith("postgres://"):
            return "postgresql+psycopg2://" + v[11:]
        return v

    # Upper bound for a single store round-trip
    STORE_TIMEOUT_SECONDS: float = 5.0

    REDIS_URL: str = "redis://localhost:6379/0"

    CLIENT_BASE_URL: str = "http://localhost:5173"  # validation URLs open here (?validate=<ticket id>)
    QR_BOX_SIZE: int = 8
    QR_BORDER: int = 2

    # start_api inserts a few demo events into an empty catalogue
    SEED_DEMO_EVENTS: bool = False

    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 25
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM: str = "tickets@ticketdesk.local"

    SENDGRID_API_KEY: str = ""
    SENDGRID_FROM_EMAIL: str = ""


settings = Settings()
