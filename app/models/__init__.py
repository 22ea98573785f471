from app.models.agendamento import (
    Agendamento,
    AgendamentoCreate,
    AgendamentoFilters,
    AgendamentoPublic,
    AgendamentoSnapshotItem,
    AgendamentoStats,
    AgendamentoUpdate,
    BackupSnapshot,
)

__all__ = [
    "Agendamento",
    "AgendamentoCreate",
    "AgendamentoFilters",
    "AgendamentoPublic",
    "AgendamentoSnapshotItem",
    "AgendamentoStats",
    "AgendamentoUpdate",
    "BackupSnapshot",
]
