from fastapi import Request

from app.core.config import Settings
from app.services.store import AgendamentoStore


def get_store(request: Request) -> AgendamentoStore:
    """The record store owned by the running application."""
    return request.app.state.store


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
