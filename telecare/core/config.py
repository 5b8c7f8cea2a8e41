import os
from typing import Optional, List
from dotenv import load_dotenv

load_dotenv()

class Settings:
    ENV: str = os.getenv("ENV", "local")
    EMAIL_BACKEND: str = os.getenv("EMAIL_BACKEND", "console")
    SMS_BACKEND: str = os.getenv("SMS_BACKEND", "console")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Database
    DATABASE_URL: Optional[str] = os.getenv("DATABASE_URL")
    DATABASE_ECHO: bool = os.getenv("DATABASE_ECHO", "False").lower() == "true"
    DATABASE_POOL_SIZE: int = int(os.getenv("DATABASE_POOL_SIZE", 20))
    DATABASE_MAX_OVERFLOW: int = int(os.getenv("DATABASE_MAX_OVERFLOW", 10))

    # JWT / Security
    SECRET_KEY: str = os.getenv("SECRET_KEY", "change-me")
    ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24 * 7))

    # App identity / email
    APP_NAME: str = os.getenv("APP_NAME", "TeleCare")
    SENDER_NAME: str = os.getenv("SENDER_NAME", "TeleCare Team")

    SMTP_HOST: Optional[str] = os.getenv("SMTP_HOST")
    SMTP_PORT: Optional[int] = int(os.getenv("SMTP_PORT", 587))
    SMTP_USER: Optional[str] = os.getenv("SMTP_USER")
    SMTP_PASSWORD: Optional[str] = os.getenv("SMTP_PASSWORD")

    # Media
    MEDIA_BASE_URL: str = os.getenv("MEDIA_BASE_URL", "http://localhost:8000")
    DEFAULT_PROFILE_PICTURE: str = os.getenv(
        "DEFAULT_PROFILE_PICTURE", "https://via.placeholder.com/150?text=Doctor"
    )

    # CORS
    BACKEND_CORS_ORIGINS: Optional[str] = os.getenv("BACKEND_CORS_ORIGINS", "http://localhost:5173")

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = os.getenv("RATE_LIMIT_ENABLED", "True").lower() == "true"
    RATE_LIMIT_REQUESTS: int = int(os.getenv("RATE_LIMIT_REQUESTS", 100))
    RATE_LIMIT_PERIOD_SECONDS: int = int(os.getenv("RATE_LIMIT_PERIOD_SECONDS", 60))

    # Scheduling
    CONSULTATION_DURATION_MINUTES: int = int(os.getenv("CONSULTATION_DURATION_MINUTES", 3))
    SLOT_INTERVAL_MINUTES: int = int(os.getenv("SLOT_INTERVAL_MINUTES", 3))
    DOCTOR_CANCEL_NOTICE_HOURS: int = int(os.getenv("DOCTOR_CANCEL_NOTICE_HOURS", 24))

    # Cron endpoints
    CRON_SECRET: Optional[str] = os.getenv("CRON_SECRET") or None
    CRON_BASE_URL: str = os.getenv("CRON_BASE_URL", "http://localhost:8000")

    # SMS (Twilio)
    TWILIO_ACCOUNT_SID: Optional[str] = os.getenv("TWILIO_ACCOUNT_SID")
    TWILIO_AUTH_TOKEN: Optional[str] = os.getenv("TWILIO_AUTH_TOKEN")
    TWILIO_FROM_NUMBER: Optional[str] = os.getenv("TWILIO_FROM_NUMBER")

    # Redis / Celery
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    CACHE_ENABLED: bool = os.getenv("CACHE_ENABLED", "True").lower() == "true"
    SLOT_CACHE_TTL_SECONDS: int = int(os.getenv("SLOT_CACHE_TTL_SECONDS", 300))
    CELERY_TASK_ALWAYS_EAGER: bool = os.getenv("CELERY_TASK_ALWAYS_EAGER", "False").lower() == "true"

    @property
    def cors_origins(self) -> List[str]:
        if not self.BACKEND_CORS_ORIGINS:
            return []
        return [o.strip() for o in self.BACKEND_CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()
