import ssl
from fastapi import Request
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool
from app.config import Settings


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    if not settings.DATABASE_URL:
        raise RuntimeError("DATABASE_URL not set")

    server_settings = {"statement_timeout": str(settings.DB_STATEMENT_TIMEOUT_MS)}
    connect_args = {"server_settings": server_settings}
    if settings.DATABASE_SSL:
        # Create an SSLContext as recommended for asyncpg
        ssl_ctx = ssl.create_default_context()
        # Allow self-signed certs for managed hosts
        ssl_ctx.check_hostname = False
        ssl_ctx.verify_mode = ssl.CERT_NONE
        connect_args["ssl"] = ssl_ctx

    return create_async_engine(
        settings.DATABASE_URL,
        poolclass=NullPool,  # Recommended for serverless/async environments
        connect_args=connect_args,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


# Dependency for getting a session in FastAPI routes.
# The factory is built at startup and kept on app.state.
async def get_session(request: Request) -> AsyncSession:
    session_factory = request.app.state.session_factory
    async with session_factory() as session:
        yield session
