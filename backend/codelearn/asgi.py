"""ASGI entrypoint: ``uvicorn codelearn.asgi:app``."""
from .main import create_app

app = create_app()
