import logging
from typing import Any

from app.core.exceptions import AgendamentoNotFoundError
from app.models.agendamento import (
    AgendamentoCreate,
    AgendamentoFilters,
    AgendamentoPublic,
    AgendamentoStats,
    AgendamentoUpdate,
    BackupSnapshot,
    utc_naive_now,
)
from app.services.agendamento_service import (
    build_new_agendamento,
    compute_stats,
    matches_filters,
    merge_update,
    next_id_after,
    parse_snapshot,
    sample_agendamentos,
)
from app.services.store import AgendamentoStore

logger = logging.getLogger(__name__)


class MemoryStore(AgendamentoStore):
    """Records kept in an ordered list owned by this instance.

    Data lives only as long as the process. Mutations finish without awaiting, so
    a single event loop never observes a half-applied change.
    """

    backend_name = "memory"

    def __init__(self, seed_sample_data: bool = False) -> None:
        self._agendamentos: list[AgendamentoPublic] = []
        self._next_id = 1
        self._seed_sample_data = seed_sample_data

    @property
    def next_id(self) -> int:
        return self._next_id

    async def startup(self) -> None:
        if self._seed_sample_data and not self._agendamentos:
            for data in sample_agendamentos(utc_naive_now())[:1]:
                await self.create(data)
            logger.info("Memory store seeded with %d sample record(s)", len(self._agendamentos))

    def _index_of(self, agendamento_id: int) -> int:
        for index, a in enumerate(self._agendamentos):
            if a.id == agendamento_id:
                return index
        raise AgendamentoNotFoundError(agendamento_id)

    async def count(self) -> int:
        return len(self._agendamentos)

    async def list_agendamentos(self, filters: AgendamentoFilters, limit: int) -> list[AgendamentoPublic]:
        result = [a for a in self._agendamentos if matches_filters(a, filters)]
        result.sort(key=lambda a: a.data_agendamento)
        return [a.model_copy() for a in result[:limit]]

    async def get(self, agendamento_id: int) -> AgendamentoPublic:
        return self._agendamentos[self._index_of(agendamento_id)].model_copy()

    async def create(self, data: AgendamentoCreate) -> AgendamentoPublic:
        fields = build_new_agendamento(data, utc_naive_now())
        agendamento = AgendamentoPublic(id=self._next_id, **fields)
        self._next_id += 1
        self._agendamentos.append(agendamento)
        logger.info("Agendamento %d created for %s", agendamento.id, agendamento.data_agendamento)
        return agendamento.model_copy()

    async def update(self, agendamento_id: int, partial: AgendamentoUpdate) -> AgendamentoPublic:
        index = self._index_of(agendamento_id)
        existing = self._agendamentos[index]
        changes = merge_update(existing, partial, utc_naive_now())
        updated = AgendamentoPublic.model_validate({**existing.model_dump(), **changes})
        self._agendamentos[index] = updated
        logger.info("Agendamento %d updated (%s)", agendamento_id, ", ".join(sorted(changes)))
        return updated.model_copy()

    async def delete(self, agendamento_id: int) -> None:
        index = self._index_of(agendamento_id)
        del self._agendamentos[index]
        logger.info("Agendamento %d deleted", agendamento_id)

    async def clear(self) -> None:
        removed = len(self._agendamentos)
        self._agendamentos = []
        self._next_id = 1
        logger.info("Memory store cleared (%d record(s) removed)", removed)

    async def backup(self) -> BackupSnapshot:
        return BackupSnapshot(
            timestamp=utc_naive_now(),
            total_agendamentos=len(self._agendamentos),
            next_id=self._next_id,
            agendamentos=[a.model_copy() for a in self._agendamentos],
        )

    async def restore(self, payload: Any) -> int:
        records, next_id = parse_snapshot(payload, utc_naive_now())
        # A supplied next_id never rewinds below ids already in use
        self._next_id = max(next_id or 0, next_id_after(records))
        self._agendamentos = records
        logger.info("Memory store restored: %d record(s), next id %d", len(records), self._next_id)
        return len(records)

    async def stats(self) -> AgendamentoStats:
        return compute_stats(self._agendamentos, utc_naive_now())
