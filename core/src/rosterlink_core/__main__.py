from __future__ import annotations

import logging

import uvicorn
from dotenv import load_dotenv

from rosterlink_core.app import LOG_FORMAT, create_app
from rosterlink_core.config import load_core_config


def main() -> None:
    # AIRTABLE_API_KEY, AIRTABLE_BASE_ID, JWT_SECRET, PORT may live in ./.env
    load_dotenv()

    config = load_core_config()

    logging.basicConfig(
        level=config.logging.level.upper(),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler()],
    )

    logger = logging.getLogger("rosterlink_core")
    logger.info(
        "Access the application at http://localhost:%d", config.network.port
    )

    uvicorn.run(create_app(config), host=config.network.bind_host, port=config.network.port)


if __name__ == "__main__":
    main()
