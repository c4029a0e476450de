from typing import List

from pydantic import BaseModel

from src import load_secrets
from src.security.request_guard import (
    BATCH_SECURITY_CONFIG,
    DEFAULT_SECURITY_CONFIG,
    SecurityConfig,
)


class GameSettings(BaseModel):
    """Runtime settings; defaults come from the environment (see load_secrets)."""

    regen_interval_seconds: int = load_secrets.energy_regen_seconds
    default_max_energy: int = load_secrets.default_max_energy
    auto_provision_demo_entities: bool = load_secrets.auto_provision_demo_entities
    db_max_retries: int = load_secrets.db_max_retries

    rate_limit_backend: str = load_secrets.rate_limit_backend
    redis_url: str = load_secrets.redis_url
    guard_sweep_minutes: int = load_secrets.guard_sweep_minutes
    cors_allow_origins: List[str] = load_secrets.cors_allow_origins

    progress_security: SecurityConfig = DEFAULT_SECURITY_CONFIG
    batch_security: SecurityConfig = BATCH_SECURITY_CONFIG
    level_up_security: SecurityConfig = DEFAULT_SECURITY_CONFIG
