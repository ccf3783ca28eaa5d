"""Permite ``python -m dochub`` para levantar la API."""

import uvicorn

from dochub.config import get_settings

settings = get_settings()
uvicorn.run("dochub.api.app:create_app", factory=True, host=settings.api_host, port=settings.api_port)
