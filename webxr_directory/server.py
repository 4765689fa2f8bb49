from __future__ import annotations

import logging

import uvicorn

from webxr_directory.core.config import settings
from webxr_directory.interfaces.http import create_app


app = create_app()


if __name__ == "__main__":
    logging.basicConfig(level=settings.log_level.upper())
    uvicorn.run("webxr_directory.server:app", host=settings.host, port=settings.port)
