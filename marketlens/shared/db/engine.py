from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import QueuePool, StaticPool

from marketlens.shared.config import config


def create_db_engine(url: str | None = None, echo: bool = False) -> Engine:
    """Create an engine for `url` (default: Config.database_url).

    SQLite URLs get a single shared connection so in-memory databases survive
    across sessions; everything else uses a bounded QueuePool.
    """
    url = url or config.database_url
    if url.startswith("sqlite"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=echo,
        )
    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=1800,
        echo=echo,
    )


engine = create_db_engine()
