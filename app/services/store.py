from abc import ABC, abstractmethod
from typing import Any

from app.models.agendamento import (
    AgendamentoCreate,
    AgendamentoFilters,
    AgendamentoPublic,
    AgendamentoStats,
    AgendamentoUpdate,
    BackupSnapshot,
)


class AgendamentoStore(ABC):
    """Contract shared by the in-memory and database record stores.

    Every operation returns detached ``AgendamentoPublic`` copies; mutating them
    does not touch the store. Failures are raised as ``AgendaError`` subclasses.
    """

    backend_name: str = ""

    async def startup(self) -> None:
        """Prepare the backend (schema, sample data)."""

    async def shutdown(self) -> None:
        """Release backend resources."""

    async def health(self) -> dict[str, Any]:
        """Backend-specific details reported by /status."""
        return {}

    @abstractmethod
    async def count(self) -> int: ...

    @abstractmethod
    async def list_agendamentos(self, filters: AgendamentoFilters, limit: int) -> list[AgendamentoPublic]:
        """Matching records sorted by data_agendamento ascending, at most ``limit``."""

    @abstractmethod
    async def get(self, agendamento_id: int) -> AgendamentoPublic: ...

    @abstractmethod
    async def create(self, data: AgendamentoCreate) -> AgendamentoPublic: ...

    @abstractmethod
    async def update(self, agendamento_id: int, partial: AgendamentoUpdate) -> AgendamentoPublic: ...

    @abstractmethod
    async def delete(self, agendamento_id: int) -> None: ...

    @abstractmethod
    async def clear(self) -> None:
        """Remove every record and restart ids at 1."""

    @abstractmethod
    async def backup(self) -> BackupSnapshot: ...

    @abstractmethod
    async def restore(self, payload: Any) -> int:
        """Replace all records with the snapshot's; returns how many were restored."""

    @abstractmethod
    async def stats(self) -> AgendamentoStats: ...
