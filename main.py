"""
Container entrypoint for the property onboarding service.

Binds to 0.0.0.0:$PORT. Other settings come from the environment (see utils.config).
"""

import uvicorn

from utils.config import Config
from utils.log import configure_logging

if __name__ == "__main__":
    config = Config.load()
    configure_logging(config.log_level)

    # Import after logging is configured so module loggers pick it up
    from web.app import app

    uvicorn.run(app, host="0.0.0.0", port=config.port, log_level=config.log_level.lower())
