"""
Server entry point: ``uvicorn app.asgi:app``.

Settings come from the environment and .env; the serverless entry builds its own
app in ``api/index.py``.
"""
from app.main import create_app

app = create_app()
