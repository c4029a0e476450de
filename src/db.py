import pathlib

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from src.load_secrets import db_backend, db_name, host, password, port, sqlite_path, user


def database_url() -> str:
    """Return the SQLAlchemy URL for the configured backend."""
    if db_backend == "postgres":
        return f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{db_name}"

    if sqlite_path:
        file_path = pathlib.Path(sqlite_path)
    else:
        file_path = pathlib.Path(__file__).parents[1] / "card_game.sqlite3"
    return f"sqlite+aiosqlite:///{file_path}"


def create_engine_for(url: str) -> AsyncEngine:
    if url.startswith("postgresql"):
        return create_async_engine(url, pool_size=20, max_overflow=20, pool_pre_ping=True)
    return create_async_engine(url=url, echo=False)


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker:
    """Build the session factory used by the DB service layer."""
    return async_sessionmaker(
        autocommit=False,
        class_=AsyncSession,
        autoflush=True,
        expire_on_commit=False,
        bind=bind,
    )


engine = create_engine_for(database_url())
# Centralized session factory to avoid creating it in router modules.
Session = create_session_factory(engine)
