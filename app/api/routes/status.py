import time
from typing import Any

from fastapi import APIRouter, Depends, Request

from app.api.deps import get_settings, get_store
from app.api.schemas.agendamento import StatusResponse
from app.core.config import Settings
from app.models.agendamento import utc_naive_now
from app.services.store import AgendamentoStore

router = APIRouter(tags=["status"])
# Mounted without the API prefix
root_router = APIRouter(tags=["status"])

_ENDPOINTS = (
    ("GET", "/status", "Status da API"),
    ("GET", "/agendamentos", "Listar agendamentos"),
    ("POST", "/agendamentos", "Criar agendamento"),
    ("GET", "/agendamentos/:id", "Buscar agendamento por ID"),
    ("PUT", "/agendamentos/:id", "Atualizar agendamento"),
    ("DELETE", "/agendamentos/:id", "Deletar agendamento"),
    ("GET", "/stats", "Estatísticas"),
    ("GET", "/backup", "Fazer backup"),
    ("POST", "/restore", "Restaurar backup"),
    ("DELETE", "/limpar-tudo", "Remover todos os agendamentos"),
)


@root_router.get("/")
async def root(
    store: AgendamentoStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    prefix = settings.route_prefix
    endpoints = {"GET /": "Esta página"}
    for method, path, description in _ENDPOINTS:
        endpoints[f"{method} {prefix}{path}"] = description
    return {
        "success": True,
        "message": "API de Agendamentos está funcionando!",
        "timestamp": utc_naive_now().isoformat(),
        "platform": settings.platform,
        "database": store.backend_name,
        "endpoints": endpoints,
    }


@router.get("/status", response_model=StatusResponse)
async def api_status(
    request: Request,
    store: AgendamentoStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> StatusResponse:
    details = await store.health()
    return StatusResponse(
        status="online",
        platform=settings.platform,
        database=store.backend_name,
        timestamp=utc_naive_now(),
        total_agendamentos=await store.count(),
        uptime=round(time.monotonic() - request.app.state.started_at, 3),
        db_version=details.get("db_version"),
    )
