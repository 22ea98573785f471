from datetime import datetime
from pydantic import BaseModel

from app.models.agendamento import AgendamentoPublic, AgendamentoStats


class SuccessResponse(BaseModel):
    success: bool = True


class MessageResponse(SuccessResponse):
    message: str


class AgendamentoListResponse(SuccessResponse):
    total: int
    agendamentos: list[AgendamentoPublic]


class AgendamentoDetailResponse(SuccessResponse):
    agendamento: AgendamentoPublic


class AgendamentoMutationResponse(MessageResponse):
    agendamento: AgendamentoPublic


class StatsResponse(SuccessResponse):
    stats: AgendamentoStats


class RestoreResponse(MessageResponse):
    total_agendamentos: int


class StatusResponse(SuccessResponse):
    status: str
    platform: str
    database: str
    timestamp: datetime
    total_agendamentos: int
    uptime: float
    db_version: str | None = None


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
