from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_GITHUB_API_URL = "https://api.github.com"
DEFAULT_RUN_TIMEOUT_SECONDS = 300.0


class Settings(BaseSettings):
    """Environment settings for a token rotation run.

    Per-run inputs (app ID, installation, key path, target secret) come
    from command-line flags. These settings cover how the run talks to
    the outside world and are read from ``TOKENGETTER_*`` variables,
    which is how a CronJob manifest usually injects them.
    """

    model_config = SettingsConfigDict(
        env_prefix="TOKENGETTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # GitHub REST API base. Override for GitHub Enterprise Server,
    # e.g. https://ghe.example.com/api/v3
    github_api_url: str = DEFAULT_GITHUB_API_URL

    # Whole-run deadline. Every HTTP and Kubernetes call is bounded by
    # whatever is left of it.
    run_timeout_seconds: float = DEFAULT_RUN_TIMEOUT_SECONDS

    # Empty means in-cluster service account credentials.
    kubeconfig: str = ""

    # Logging
    log_json: bool = False
    log_level: str = "INFO"

    @field_validator("github_api_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/") if isinstance(v, str) else v

    @field_validator("run_timeout_seconds")
    @classmethod
    def positive_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("run_timeout_seconds must be positive")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


def get_settings() -> Settings:
    return Settings()
