import os
from dataclasses import dataclass
from typing import List, Optional

from .errors import ConfigError


IMAGE_PROVIDERS = ("pixabay", "unsplash")


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


@dataclass
class Settings:
    """Process configuration, read once at startup and passed to the app factory.

    Credentials are optional at construction time so tests and dry runs can
    build a Settings without them; `validate()` is what enforces them.
    """

    groq_api_key: Optional[str] = None
    groq_api_url: str = "https://api.groq.com/openai/v1/chat/completions"
    groq_model: str = "llama-3.1-8b-instant"
    image_provider: str = "pixabay"
    pixabay_api_key: Optional[str] = None
    pixabay_api_url: str = "https://pixabay.com/api/"
    unsplash_access_key: Optional[str] = None
    unsplash_api_url: str = "https://api.unsplash.com"
    database_url: str = "sqlite:///spicy_proxy.db"
    host: str = "0.0.0.0"
    port: int = 3000
    upstream_timeout: float = 15.0
    dry_run: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        defaults = cls()
        try:
            port = int(os.getenv("PORT", str(defaults.port)))
            timeout = float(os.getenv("UPSTREAM_TIMEOUT", str(defaults.upstream_timeout)))
        except ValueError as exc:
            raise ConfigError(f"PORT and UPSTREAM_TIMEOUT must be numeric: {exc}") from exc

        return cls(
            groq_api_key=os.getenv("GROQ_API_KEY") or None,
            groq_api_url=os.getenv("GROQ_API_URL") or defaults.groq_api_url,
            groq_model=os.getenv("GROQ_MODEL") or defaults.groq_model,
            image_provider=(os.getenv("IMAGE_PROVIDER") or defaults.image_provider).lower(),
            pixabay_api_key=os.getenv("PIXABAY_API_KEY") or None,
            pixabay_api_url=os.getenv("PIXABAY_API_URL") or defaults.pixabay_api_url,
            unsplash_access_key=os.getenv("UNSPLASH_ACCESS_KEY") or None,
            unsplash_api_url=os.getenv("UNSPLASH_API_URL") or defaults.unsplash_api_url,
            database_url=os.getenv("DATABASE_URL") or defaults.database_url,
            host=os.getenv("HOST") or defaults.host,
            port=port,
            upstream_timeout=timeout,
            dry_run=_env_flag("DRY_RUN"),
            log_level=(os.getenv("LOG_LEVEL") or defaults.log_level).upper(),
        )

    def missing_credentials(self) -> List[str]:
        if self.dry_run:
            return []
        missing = []
        if not self.groq_api_key:
            missing.append("GROQ_API_KEY")
        if self.image_provider == "pixabay" and not self.pixabay_api_key:
            missing.append("PIXABAY_API_KEY")
        if self.image_provider == "unsplash" and not self.unsplash_access_key:
            missing.append("UNSPLASH_ACCESS_KEY")
        if not self.database_url:
            missing.append("DATABASE_URL")
        return missing

    def validate(self) -> "Settings":
        if self.image_provider not in IMAGE_PROVIDERS:
            raise ConfigError(
                f"IMAGE_PROVIDER must be one of {', '.join(IMAGE_PROVIDERS)} (got {self.image_provider!r})"
            )
        if self.upstream_timeout <= 0:
            raise ConfigError("UPSTREAM_TIMEOUT must be positive")
        missing = self.missing_credentials()
        if missing:
            raise ConfigError("Missing required environment variables: " + ", ".join(missing))
        return self
