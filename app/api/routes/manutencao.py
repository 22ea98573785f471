import logging
from typing import Any

from fastapi import APIRouter, Body, Depends

from app.api.deps import get_store
from app.api.schemas.agendamento import MessageResponse, RestoreResponse, StatsResponse
from app.services.store import AgendamentoStore

logger = logging.getLogger(__name__)
router = APIRouter(tags=["manutencao"])

_MEMORY_BACKUP_NOTE = "Dados em memória são perdidos ao reiniciar; salve este JSON para restaurar depois"


@router.get("/backup")
async def backup(store: AgendamentoStore = Depends(get_store)) -> dict[str, Any]:
    snapshot = await store.backup()
    payload = snapshot.model_dump(mode="json")
    if snapshot.next_id is None:
        payload.pop("next_id")
    response: dict[str, Any] = {
        "success": True,
        "message": "Backup criado com sucesso",
        "backup": payload,
    }
    if store.backend_name == "memory":
        response["note"] = _MEMORY_BACKUP_NOTE
    return response


@router.post("/restore", response_model=RestoreResponse)
async def restore(
    payload: Any = Body(...),
    store: AgendamentoStore = Depends(get_store),
) -> RestoreResponse:
    total = await store.restore(payload)
    return RestoreResponse(message="Dados restaurados com sucesso", total_agendamentos=total)


@router.delete("/limpar-tudo", response_model=MessageResponse)
async def limpar_tudo(store: AgendamentoStore = Depends(get_store)) -> MessageResponse:
    """Remove every record. Irreversible."""
    await store.clear()
    logger.warning("All agendamentos removed via /limpar-tudo")
    return MessageResponse(message="Todos os agendamentos foram removidos")


@router.get("/stats", response_model=StatsResponse)
async def stats(store: AgendamentoStore = Depends(get_store)) -> StatsResponse:
    return StatsResponse(stats=await store.stats())
