import os
from dotenv import load_dotenv

load_dotenv()


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


db_backend = os.getenv("DB_BACKEND", "sqlite")
user = os.getenv("DB_USER")
password = os.getenv("DB_PASSWORD")
host = os.getenv("DB_HOST")
port = os.getenv("DB_PORT")
db_name = os.getenv("DB_NAME")
sqlite_path = os.getenv("SQLITE_PATH")

energy_regen_seconds = int(os.getenv("ENERGY_REGEN_SECONDS", "120"))
default_max_energy = int(os.getenv("DEFAULT_MAX_ENERGY", "100"))
auto_provision_demo_entities = _as_bool(os.getenv("AUTO_PROVISION_DEMO_ENTITIES"), True)
db_max_retries = int(os.getenv("DB_MAX_RETRIES", "3"))

rate_limit_backend = os.getenv("RATE_LIMIT_BACKEND", "memory")
redis_url = os.getenv("REDIS_URL", "redis://redis:6379/0")
guard_sweep_minutes = int(os.getenv("GUARD_SWEEP_MINUTES", "10"))
cors_allow_origins = [
    origin.strip()
    for origin in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",")
    if origin.strip()
]

if __name__ == "__main__":
    print(db_backend, user, host, port, db_name, energy_regen_seconds, rate_limit_backend)
