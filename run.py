#!/usr/bin/env python3
"""
Run the property onboarding web server.
"""

import logging

import uvicorn

from utils.config import Config
from utils.log import configure_logging

logger = logging.getLogger(__name__)


def main():
    """Start the web server."""
    config = Config.load()
    configure_logging(config.log_level)

    logger.info("Starting property onboarding on http://%s:%s", config.host, config.port)
    logger.info("Property service: %s, data dir: %s", config.api_base_url, config.data_dir)

    uvicorn.run(
        "web.app:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
