from __future__ import annotations
import os
from pydantic import BaseModel

def _origins(raw: str) -> list[str]:
    return [o.strip() for o in raw.split(",") if o.strip()]

class Settings(BaseModel):
    environment: str = os.getenv("ENVIRONMENT", "dev")
    app_name: str = os.getenv("APP_NAME", "codearena-api")
    app_display_name: str = os.getenv("APP_DISPLAY_NAME", "CodeArena")
    app_version: str = os.getenv("APP_VERSION", "0.1.0")
    git_sha: str = os.getenv("GIT_SHA", "dev")
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "5001"))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    # Empty list => any origin
    cors_origins: list[str] = _origins(os.getenv("CLIENT_URLS", ""))
    database_url: str = os.getenv("DATABASE_URL", "postgresql+asyncpg://postgres:postgres@db:5432/codearena_dev")

    # GitHub (pull requests + judge team membership)
    github_api_url: str = os.getenv("GITHUB_API_URL", "https://api.github.com")
    github_org: str = os.getenv("GITHUB_ORG", "")
    github_admin_token: str = os.getenv("GITHUB_ADMIN_TOKEN", "")
    github_judge_team: str = os.getenv("GITHUB_JUDGE_TEAM", "judge-repo1")
    github_timeout_seconds: float = float(os.getenv("GITHUB_TIMEOUT_SECONDS", "30"))

settings = Settings()
