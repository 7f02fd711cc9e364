import os


def _split_csv(raw: str) -> list[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


class Settings:
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./recruitflow.db")
    DB_CONNECT_TIMEOUT_SEC: int = int(os.getenv("DB_CONNECT_TIMEOUT_SEC", "5"))
    DB_STATEMENT_TIMEOUT_MS: int = int(os.getenv("DB_STATEMENT_TIMEOUT_MS", "10000"))

    APP_BASE_URL: str = os.getenv("APP_BASE_URL", "http://localhost:3000")
    INVITATION_TTL_HOURS: int = int(os.getenv("INVITATION_TTL_HOURS", "24"))
    INVITATION_REQUIRE_EMAIL_MATCH: bool = os.getenv("INVITATION_REQUIRE_EMAIL_MATCH", "true").lower() == "true"
    SESSION_TTL_HOURS: int = int(os.getenv("SESSION_TTL_HOURS", "168"))
    PASSWORD_HASH_ITERATIONS: int = int(os.getenv("PASSWORD_HASH_ITERATIONS", "600000"))

    RESEND_API_KEY: str = os.getenv("RESEND_API_KEY", "")
    RESEND_API_URL: str = os.getenv("RESEND_API_URL", "https://api.resend.com/emails")
    EMAIL_FROM: str = os.getenv("EMAIL_FROM", "Recruitflow <onboarding@resend.dev>")
    EMAIL_TIMEOUT_SEC: float = float(os.getenv("EMAIL_TIMEOUT_SEC", "10"))

    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    LLM_MODEL: str = os.getenv("LLM_MODEL", "gpt-4o-mini")
    LLM_TIMEOUT_SEC: float = float(os.getenv("LLM_TIMEOUT_SEC", "30"))

    S3_ENDPOINT: str | None = os.getenv("S3_ENDPOINT")
    S3_ACCESS_KEY: str | None = os.getenv("S3_ACCESS_KEY")
    S3_SECRET_KEY: str | None = os.getenv("S3_SECRET_KEY")
    S3_BUCKET_JOBS: str = os.getenv("S3_BUCKET_JOBS", "jobs")
    S3_TIMEOUT_SEC: int = int(os.getenv("S3_TIMEOUT_SEC", "10"))
    MEDIA_SIGN_EXPIRY_SEC: int = int(os.getenv("MEDIA_SIGN_EXPIRY_SEC", "3600"))
    UPLOAD_MAX_BYTES: int = int(os.getenv("UPLOAD_MAX_BYTES", str(10 * 1024 * 1024)))
    UPLOAD_ALLOWED_TYPES: list[str] = _split_csv(
        os.getenv("UPLOAD_ALLOWED_TYPES", "image/jpeg,image/png,image/gif")
    )

    CORS_ALLOWED_ORIGINS: list[str] = _split_csv(
        os.getenv("CORS_ALLOWED_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")
    )
    API_ROOT_PATH: str = os.getenv("API_ROOT_PATH", "")
    API_PREFIX: str = os.getenv("API_PREFIX", "")


settings = Settings()
