import os
from dataclasses import dataclass, field


def _split_origins(raw: str) -> list[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@dataclass(frozen=True)
class Settings:
    database_url: str = os.getenv("SCHOOL_DATABASE_URL", "")
    bcrypt_rounds: int = int(os.getenv("SCHOOL_BCRYPT_ROUNDS", "12"))
    seed_demo_data: bool = os.getenv("SCHOOL_SEED_DEMO_DATA", "true").lower() == "true"
    api_prefix: str = os.getenv("SCHOOL_API_PREFIX", "/api/v1/school")
    cors_origins: list[str] = field(
        default_factory=lambda: _split_origins(
            os.getenv("SCHOOL_CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173,http://localhost:8000")
        )
    )


settings = Settings()
