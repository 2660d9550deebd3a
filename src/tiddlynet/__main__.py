"""Run the reference tiddler server: ``python -m tiddlynet``."""

import logging

import uvicorn

from tiddlynet.config import settings


def main() -> None:
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "tiddlynet.server:app",
        host=settings.server_host,
        port=settings.server_port,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
