import logging
import os

import uvicorn

from pagechain.api.server import create_app
from pagechain.container import Container

logger = logging.getLogger(__name__)


def main(container: Container = None):
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    container = container or Container()

    profiles = container.profile_store().list_profile_files()
    logger.info("Loaded %s profile file(s) from %s", len(profiles), container.config.PAGECHAIN_PROFILES_DIR())

    app = create_app(container)
    uvicorn.run(app, host=container.config.HOST(), port=int(container.config.PORT()))


if __name__ == '__main__':
    main()
