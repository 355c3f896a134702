#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Script to create the MongoDB indexes the issue tracker relies on.

The unique index on ``issues.trackingId`` is what makes tracking ID
collisions detectable, so run this before the API takes traffic.
"""

import sys
import logging

from pymongo.errors import PyMongoError

from ..services.mongodb import get_mongodb_service, close_mongodb_connection

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def main() -> int:
    """Create MongoDB indexes."""
    try:
        logger.info("Starting MongoDB index creation...")

        mongodb_service = get_mongodb_service()

        health = mongodb_service.health_check()
        if health['status'] != 'healthy':
            logger.error(f"MongoDB is not healthy: {health}")
            return 1

        logger.info(f"Connected to MongoDB {health['version']} - Database: {health['database']}")

        mongodb_service.create_indexes()

        logger.info("MongoDB indexes created successfully!")
        return 0

    except PyMongoError as e:
        logger.error(f"Failed to create indexes: {e}")
        return 1
    finally:
        close_mongodb_connection()


if __name__ == "__main__":
    sys.exit(main())
