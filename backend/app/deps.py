from __future__ import annotations
from app.config import settings
from app.services.github import GitHubClient

def get_github_client() -> GitHubClient:
    return GitHubClient.from_settings(settings)
