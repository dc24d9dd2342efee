"""Application settings loaded from environment variables."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration settings."""

    # Server Configuration
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    LOG_LEVEL: str = "INFO"

    # GitHub OAuth App
    CLIENT_ID: str = ""
    CLIENT_SECRET: str = ""
    OAUTH_SCOPE: str = "repo"

    # GitHub endpoints
    GITHUB_AUTHORIZE_URL: str = "https://github.com/login/oauth/authorize"
    GITHUB_TOKEN_URL: str = "https://github.com/login/oauth/access_token"
    GITHUB_API_URL: str = "https://api.github.com"
    GITHUB_HTTP_TIMEOUT: float = 10.0

    # Session Management
    SESSION_SECRET: str
    SESSION_COOKIE_NAME: str = "sid"
    SESSION_MAX_AGE: int = 60 * 60 * 24  # 24h, 요청마다 연장(sliding)
    SESSION_SWEEP_INTERVAL: int = 600
    COOKIE_SECURE: bool = False  # HTTPS 배포 시 True

    # OAuth state cookie (로그인 시도 1회용)
    STATE_COOKIE_NAME: str = "github_auth_state"
    STATE_COOKIE_MAX_AGE: int = 600

    # Repository cache
    REPO_CACHE_TTL: int = 100
    REPO_CACHE_CHECK_PERIOD: int = 120
    REPO_CACHE_MAX_ENTRIES: int = 1024

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
