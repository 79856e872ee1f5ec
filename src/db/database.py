"""Generate database sessions for the shared store"""

from sqlalchemy import Engine, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from src.config import Settings
from src.core.exceptions import MasterUnreachableError
from src.db.schema import Base


def build_engine(settings: Settings) -> Engine:
    """Create the engine and make sure all tables exist. Fails fast if the database cannot be reached."""
    engine = create_engine(settings.database_url, echo=settings.echo_sql)
    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as exc:
        raise MasterUnreachableError(
            f"Cannot reach the shared store at {settings.database_url}"
        ) from exc
    return engine


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine)
