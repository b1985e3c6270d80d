from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
import logging
import ssl

from config import DATABASE_URL, DB_SSL
from models.candidate.model import Base

logger = logging.getLogger(__name__)

connect_args = {}
if DB_SSL:
    connect_args["ssl"] = ssl.create_default_context()


engine = create_async_engine(
    DATABASE_URL,
    echo=False,
    pool_pre_ping=True,
    connect_args=connect_args
)

AsyncSessionLocal = sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)

async def init_models():
    """ Creates the candidates table if it does not exist yet. """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ready (%s)", engine.url.get_backend_name())

async def get_db():
    async with AsyncSessionLocal() as session:
        yield session
