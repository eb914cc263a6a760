import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_format: str = os.getenv("LOG_FORMAT", "json")  # json or text
    port: int = int(os.getenv("PORT", "8000"))

    # Partition used when no Stripe-Account header is sent
    default_account_id: str = os.getenv("DEFAULT_ACCOUNT_ID", "acct_default")

    # Idempotency keys expire after 24 hours on the real service
    idempotency_ttl_seconds: int = int(os.getenv("IDEMPOTENCY_TTL_SECONDS", "86400"))
    idempotency_cache_size: int = int(os.getenv("IDEMPOTENCY_CACHE_SIZE", "10000"))

    require_auth: bool = _env_bool("REQUIRE_AUTH", "true")

    # CORS
    cors_origins: str = os.getenv("CORS_ORIGINS", "")  # Comma-separated origins


def validate_settings(s: Settings) -> list[str]:
    """Validate settings at startup. Returns list of warnings."""
    warnings: list[str] = []

    if s.log_level.upper() not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        warnings.append(f"LOG_LEVEL '{s.log_level}' is not a known level, using INFO")

    if s.log_format not in {"json", "text"}:
        warnings.append(f"LOG_FORMAT '{s.log_format}' is not json or text, using json")

    if not s.require_auth:
        warnings.append("REQUIRE_AUTH is disabled, any API key will be accepted")

    if s.idempotency_ttl_seconds < 1:
        warnings.append("IDEMPOTENCY_TTL_SECONDS must be positive, replays will not work")

    if not s.default_account_id.startswith("acct_"):
        warnings.append(
            f"DEFAULT_ACCOUNT_ID '{s.default_account_id}' does not look like an account id"
        )

    return warnings


settings = Settings()
