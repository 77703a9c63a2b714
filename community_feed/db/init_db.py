import logging

from sqlalchemy import inspect

from community_feed.db.session import engine as default_engine

logger = logging.getLogger(__name__)


def create_all_tables(engine=None) -> bool:
    # Registers every model on Base.metadata
    from community_feed.db.base import Base

    engine = engine or default_engine
    try:
        existing_tables = inspect(engine).get_table_names()

        Base.metadata.create_all(bind=engine)

        new_tables = set(inspect(engine).get_table_names()) - set(existing_tables)
        if new_tables:
            logger.info(f"Created new tables: {new_tables}")

        return True
    except Exception as e:
        logger.error(f"Error creating database tables: {e}")
        return False
