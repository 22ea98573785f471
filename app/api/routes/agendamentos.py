from fastapi import APIRouter, Depends, Query, status

from app.api.deps import get_settings, get_store
from app.api.schemas.agendamento import (
    AgendamentoDetailResponse,
    AgendamentoListResponse,
    AgendamentoMutationResponse,
    MessageResponse,
)
from app.core.config import Settings
from app.models.agendamento import AgendamentoCreate, AgendamentoFilters, AgendamentoUpdate
from app.services.agendamento_service import parse_date_filter
from app.services.store import AgendamentoStore

router = APIRouter(prefix="/agendamentos", tags=["agendamentos"])


@router.get("", response_model=AgendamentoListResponse)
async def list_agendamentos(
    status_filter: str | None = Query(None, alias="status"),
    data: str | None = Query(None, description="Dia do agendamento (YYYY-MM-DD)"),
    nome: str | None = Query(None),
    limite: int | None = Query(None, ge=0),
    store: AgendamentoStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> AgendamentoListResponse:
    filters = AgendamentoFilters(status=status_filter or None, data=parse_date_filter(data), nome=nome or None)
    limit = settings.default_list_limit if limite is None else limite
    agendamentos = await store.list_agendamentos(filters, limit)
    return AgendamentoListResponse(total=len(agendamentos), agendamentos=agendamentos)


@router.get("/{agendamento_id}", response_model=AgendamentoDetailResponse)
async def get_agendamento(
    agendamento_id: int,
    store: AgendamentoStore = Depends(get_store),
) -> AgendamentoDetailResponse:
    return AgendamentoDetailResponse(agendamento=await store.get(agendamento_id))


@router.post("", response_model=AgendamentoMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_agendamento(
    body: AgendamentoCreate,
    store: AgendamentoStore = Depends(get_store),
) -> AgendamentoMutationResponse:
    agendamento = await store.create(body)
    return AgendamentoMutationResponse(message="Agendamento criado com sucesso", agendamento=agendamento)


@router.put("/{agendamento_id}", response_model=AgendamentoMutationResponse)
async def update_agendamento(
    agendamento_id: int,
    body: AgendamentoUpdate,
    store: AgendamentoStore = Depends(get_store),
) -> AgendamentoMutationResponse:
    agendamento = await store.update(agendamento_id, body)
    return AgendamentoMutationResponse(message="Agendamento atualizado com sucesso", agendamento=agendamento)


@router.delete("/{agendamento_id}", response_model=MessageResponse)
async def delete_agendamento(
    agendamento_id: int,
    store: AgendamentoStore = Depends(get_store),
) -> MessageResponse:
    await store.delete(agendamento_id)
    return MessageResponse(message="Agendamento deletado com sucesso")
