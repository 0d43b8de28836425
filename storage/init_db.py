#!/usr/bin/env python3
"""
Database initialization script for win11-readiness-hub
"""
import sys
from pathlib import Path

# Add the parent directory to the path
sys.path.append(str(Path(__file__).parent.parent))

from common.config import config
from common.logging import setup_logging, get_logger
from storage.database import check_connection, init_database


def main():
    """Create the report-history tables"""
    setup_logging()
    logger = get_logger(__name__)

    try:
        config.validate()
        logger.info("Configuration validated successfully")

        if not check_connection():
            logger.error("Database connection failed", url=config.database.url)
            sys.exit(1)

        logger.info("Database connection successful")

        init_database()
        logger.info("Database tables created successfully")

        print("✅ Database initialized successfully!")

    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        print(f"❌ Database initialization failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
