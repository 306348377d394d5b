from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import NullPool, StaticPool
from safeportal.core.config import settings

db_url = settings.DATABASE_URL
if "supabase" in db_url and "ssl=" not in db_url:
    # asyncpg takes SSL from the URL, not connect_args
    db_url = db_url + ("&" if "?" in db_url else "?") + "ssl=require"

if db_url.startswith("sqlite"):
    # One shared connection so in-memory databases survive across sessions
    engine = create_async_engine(
        db_url,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
else:
    engine = create_async_engine(
        db_url,
        echo=settings.ENVIRONMENT == "development",
        future=True,
        poolclass=NullPool,
    )

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

async def get_db() -> AsyncSession:
    """
    Dependency for getting an async database session.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
