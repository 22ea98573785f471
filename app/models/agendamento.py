from datetime import UTC, date, datetime

from pydantic import BaseModel, field_validator
from sqlalchemy import DateTime, Index, Text
from sqlmodel import Field, SQLModel

STATUS_AGENDADO = "agendado"


def utc_naive_now() -> datetime:
    """Naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(UTC).replace(tzinfo=None)


def to_naive_utc(dt: datetime) -> datetime:
    """Convert to naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    if dt.tzinfo is not None:
        return dt.astimezone(UTC).replace(tzinfo=None)
    return dt


class AgendamentoBase(SQLModel):
    nome: str = Field(max_length=255)
    telefone: str | None = Field(default=None, max_length=20)
    email: str | None = Field(default=None, max_length=255)
    servico: str = Field(max_length=255)
    data_agendamento: datetime = Field(sa_type=DateTime)
    observacoes: str | None = Field(default=None, sa_type=Text)
    status: str = Field(default=STATUS_AGENDADO, max_length=50)
    criado_em: datetime = Field(default_factory=utc_naive_now, sa_type=DateTime)
    atualizado_em: datetime = Field(default_factory=utc_naive_now, sa_type=DateTime)

    @field_validator("data_agendamento", "criado_em", "atualizado_em")
    @classmethod
    def normalize_timestamps(cls, value: datetime) -> datetime:
        return to_naive_utc(value)


class Agendamento(AgendamentoBase, table=True):
    __tablename__ = "agendamentos"
    __table_args__ = (
        Index("idx_agendamentos_status", "status"),
        Index("idx_agendamentos_data", "data_agendamento"),
        Index("idx_agendamentos_nome", "nome"),
        {"sqlite_autoincrement": True},
    )
    id: int | None = Field(default=None, primary_key=True)


class AgendamentoPublic(AgendamentoBase):
    id: int


class AgendamentoCreate(SQLModel):
    """Request body for creation. Required fields are checked by the store so the
    error can list every missing name at once."""

    nome: str | None = Field(default=None, max_length=255)
    telefone: str | None = Field(default=None, max_length=20)
    email: str | None = Field(default=None, max_length=255)
    servico: str | None = Field(default=None, max_length=255)
    data_agendamento: datetime | None = None
    observacoes: str | None = None
    status: str | None = Field(default=None, max_length=50)

    @field_validator("data_agendamento")
    @classmethod
    def normalize_data_agendamento(cls, value: datetime | None) -> datetime | None:
        return to_naive_utc(value) if value is not None else None


class AgendamentoUpdate(AgendamentoCreate):
    """Mutable fields only; id, criado_em and unknown keys are ignored."""


class AgendamentoSnapshotItem(AgendamentoBase):
    """One record of a backup being restored. Past dates are allowed here."""

    id: int | None = Field(default=None, gt=0)


class AgendamentoFilters(BaseModel):
    status: str | None = None
    data: date | None = None
    nome: str | None = None


class AgendamentoStats(BaseModel):
    total: int
    por_status: dict[str, int]
    proximos_7_dias: int
    hoje: int


class BackupSnapshot(BaseModel):
    timestamp: datetime
    total_agendamentos: int
    next_id: int | None = None
    agendamentos: list[AgendamentoPublic]
