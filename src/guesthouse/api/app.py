"""ASGI entrypoint: ``uvicorn guesthouse.api.app:app``."""

from guesthouse.api.factory import create_app

app = create_app()
