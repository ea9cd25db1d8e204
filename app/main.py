"""ASGI entrypoint: ``uvicorn app.main:app``.

Importing this module loads the relay document from APP_CONFIG_PATH.
"""

from app.core.app_factory import create_app

app = create_app()
