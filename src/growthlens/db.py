from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine
from growthlens.config import settings
from growthlens.logging import logger

DATA_DIR = settings.DATA_DIR
DB_URL = settings.db_url

def make_engine(url: str = DB_URL):
    """Build an engine; in-memory URLs share one connection so tables survive."""
    if url.startswith("sqlite:///:memory:"):
        return create_engine(
            url,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(url, echo=False)

engine = make_engine(DB_URL)

def init_db(target_engine=None):
    target_engine = target_engine or engine
    if target_engine is engine and not DATA_DIR.exists():
        DATA_DIR.mkdir(parents=True, exist_ok=True)

    # Import models so SQLModel knows about the table before create_all
    from growthlens.models import kv  # noqa: F401

    logger.info(f"Initializing database at {target_engine.url}")
    SQLModel.metadata.create_all(target_engine)
