#!/usr/bin/env python3
"""
Create the incident star schema (fact, dimension and query history tables)
in the database named by db.properties
"""
import logging
import sys

from sqlalchemy import create_engine

from incident_explorer.config import load_settings
from incident_explorer.errors import ConfigError
from incident_explorer.schema import metadata

logger = logging.getLogger(__name__)


def run_migrations(properties_path=None):
    """Create every missing table; existing tables are left untouched."""
    settings = load_settings(properties_path)
    engine = create_engine(settings.sqlalchemy_url())
    try:
        with engine.begin() as conn:
            for table in metadata.sorted_tables:
                logger.info("ensuring table %s", table.name)
            metadata.create_all(conn)
    finally:
        engine.dispose()
    logger.info("migrations completed")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    try:
        run_migrations(sys.argv[1] if len(sys.argv) > 1 else None)
    except ConfigError as e:
        logger.error("%s", e)
        sys.exit(1)
