"""
Application settings loaded from environment variables.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Todoist OAuth2 ──────────────────────────────────────────────────
    todoist_client_id: str = ""
    todoist_client_secret: str = ""

    # ── Google OAuth2 ───────────────────────────────────────────────────
    google_client_id: str = ""          # Google OAuth Web App client ID
    google_client_secret: str = ""      # Google OAuth Web App client secret

    # ── OAuth redirects ─────────────────────────────────────────────────
    oauth_redirect_base: str = "http://localhost:3000"               # vendor redirects to {base}/auth/callback
    app_redirect_uri: str = "http://localhost:3000/auth/success"     # handed back to the calling app

    # ── Vendor REST APIs ────────────────────────────────────────────────
    todoist_api_base: str = "https://api.todoist.com/rest/v2"
    google_tasks_api_base: str = "https://tasks.googleapis.com/tasks/v1"
    vendor_timeout_seconds: float = 30.0

    # ── Rate limiting ───────────────────────────────────────────────────
    rate_limit_max_requests: int = 100
    rate_limit_window_ms: int = 60_000
    rate_limit_retry_after: int = 60

    # ── Security Secrets ────────────────────────────────────────────────
    token_encryption_key: str = ""      # Fernet key for encrypting vendor tokens at rest

    # ── Server ──────────────────────────────────────────────────────────
    port: int = 8000
    host: str = "0.0.0.0"
    debug: bool = False
    cors_origins: list = ["*"]

    model_config = {
        "env_file": ".env",
        "case_sensitive": False,
    }

    @property
    def oauth_callback_uri(self) -> str:
        return f"{self.oauth_redirect_base}/auth/callback"


config = Settings()
