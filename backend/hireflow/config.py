from pydantic_settings import BaseSettings
from functools import lru_cache
import os


class Settings(BaseSettings):
    app_name: str = "HireFlow Recruiting API"
    debug: bool = os.getenv("DEBUG", "false").lower() == "true"
    log_level: str = "INFO"

    # Database - supports both SQLite (local) and PostgreSQL (production)
    database_url: str = "sqlite+aiosqlite:///./hireflow.db"

    # CORS - comma-separated list of allowed origins
    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    # AI/LLM Configuration
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"
    oracle_timeout_seconds: float = 60.0
    oracle_max_retries: int = 3
    oracle_retry_backoff_seconds: float = 1.0
    oracle_extraction_temperature: float = 0.1
    oracle_scoring_temperature: float = 0.0

    # Resume storage: "disk" or "cloudinary"
    resume_storage_driver: str = "disk"
    upload_dir: str = os.path.join(os.path.dirname(os.path.dirname(__file__)), "uploads", "resumes")
    max_upload_bytes: int = 10 * 1024 * 1024  # 10MB

    # Cloudinary (media storage)
    cloudinary_cloud_name: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: str = ""
    cloudinary_folder: str = "hireflow/resumes"

    # Score the candidate pool right after a job is created
    auto_attach_on_job_create: bool = True

    class Config:
        env_file = ".env"
        extra = "ignore"
        # Make field names case-insensitive for environment variables
        case_sensitive = False

    def get_cors_origins(self) -> list:
        """Parse CORS origins from comma-separated string"""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def oracle_configured(self) -> bool:
        return bool(self.gemini_api_key.strip())


@lru_cache()
def get_settings() -> Settings:
    return Settings()
