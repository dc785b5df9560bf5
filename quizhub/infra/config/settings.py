from typing import List, Optional
from pydantic_settings import BaseSettings
from functools import lru_cache

class Settings(BaseSettings):
    # App Settings
    APP_NAME: str = "QuizHub"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    # Database Settings
    DATABASE_URL: Optional[str] = None  # Overrides the POSTGRES_* parts when set
    POSTGRES_USER: str = "quizhub"
    POSTGRES_PASSWORD: str = "quizhub"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "quizhub"
    POSTGRES_MIN_POOL_SIZE: int = 5
    POSTGRES_MAX_POOL_SIZE: int = 20
    DB_LOGGING_ENABLED: bool = False
    DB_AUTO_CREATE: bool = True  # create tables on startup

    # Security Settings
    JWT_SECRET_KEY: str = "your-secret-key"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    TOKEN_BLACKLIST_EXPIRE_MARGIN_MINUTES: int = 5  # Extra time to keep blacklisted tokens

    # OTP Settings
    OTP_LENGTH: int = 6
    OTP_EXPIRY_MINUTES: int = 10

    # Admin / Two-factor Settings
    ADMIN_REGISTRATION_ENABLED: bool = True
    TFA_ISSUER: str = "AdminDashboard"
    TFA_VALID_WINDOW: int = 1  # accepted drift in 30 second steps

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = True
    SUSPICIOUS_IP_THRESHOLD: int = 5  # failed attempts before blocking
    IP_BLOCK_DURATION: int = 15  # minutes

    # Endpoint-specific rate limits (requests per minute)
    RATE_LIMIT_AUTH_SIGNUP: int = 5
    RATE_LIMIT_AUTH_VERIFY: int = 10
    RATE_LIMIT_AUTH_REFRESH: int = 10
    RATE_LIMIT_ADMIN_LOGIN: int = 5
    RATE_LIMIT_DEFAULT: int = 120

    # CORS
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",  # Frontend development
        "http://localhost:5173",  # Admin dashboard development
    ]

    # Redis Settings
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_MAX_CONNECTIONS: int = 10
    REDIS_SOCKET_TIMEOUT: float = 2.0  # seconds
    REDIS_HEALTH_CHECK_INTERVAL: int = 30

    # Email Settings
    EMAIL_BACKEND: str = "smtp"  # smtp or console
    EMAIL_FROM: str = "no-reply@quizhub.local"
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USERNAME: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_USE_TLS: bool = True
    SMTP_TIMEOUT_SECONDS: int = 30
    EMAIL_SEND_MAX_ATTEMPTS: int = 1  # 1 means no retry
    EMAIL_RETRY_BACKOFF_SECONDS: float = 1.0

    # Quiz Settings
    ANSWER_POINTS: int = 10
    DEFAULT_LANGUAGE: str = "en"
    LEADERBOARD_DEFAULT_LIMIT: int = 10
    LEADERBOARD_MAX_LIMIT: int = 100

    # Dashboard Settings
    ACTIVE_USER_TTL_MINUTES: int = 30
    NEW_USER_WINDOW_HOURS: int = 24

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

@lru_cache()
def get_settings() -> Settings:
    return Settings()

settings = get_settings()
