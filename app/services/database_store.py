import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import delete, func, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from app.core.db import create_session_maker, init_db, server_version
from app.core.exceptions import AgendamentoNotFoundError, InvalidBackupError, StorageError
from app.models.agendamento import (
    Agendamento,
    AgendamentoCreate,
    AgendamentoFilters,
    AgendamentoPublic,
    AgendamentoStats,
    AgendamentoUpdate,
    BackupSnapshot,
    utc_naive_now,
)
from app.services.agendamento_service import (
    UPCOMING_WINDOW,
    build_new_agendamento,
    day_bounds,
    merge_update,
    parse_snapshot,
)
from app.services.store import AgendamentoStore

logger = logging.getLogger(__name__)

# Point the id generator just past the highest stored id
_RESET_SEQUENCE_SQL = {
    "postgresql": text(
        "SELECT setval(pg_get_serial_sequence('agendamentos', 'id'), "
        "COALESCE((SELECT MAX(id) FROM agendamentos), 0) + 1, false)"
    ),
    "sqlite": text(
        "UPDATE sqlite_sequence SET seq = (SELECT COALESCE(MAX(id), 0) FROM agendamentos) "
        "WHERE name = 'agendamentos'"
    ),
}


def _to_public(row: Agendamento) -> AgendamentoPublic:
    return AgendamentoPublic.model_validate(row)


class DatabaseStore(AgendamentoStore):
    """Records kept in the ``agendamentos`` table.

    Each operation opens its own session, so a pooled connection is held only for
    the duration of that operation and returned on every exit path.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self._session_maker = create_session_maker(engine)
        self.backend_name = engine.dialect.name

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        async with self._session_maker() as session:
            try:
                yield session
            except (SQLAlchemyError, OSError) as e:
                await session.rollback()
                logger.exception("Database operation failed: %s", e)
                raise StorageError(str(e)) from e

    async def _get_row(self, session: AsyncSession, agendamento_id: int) -> Agendamento:
        row = await session.get(Agendamento, agendamento_id)
        if row is None:
            raise AgendamentoNotFoundError(agendamento_id)
        return row

    async def _count_where(self, session: AsyncSession, *conditions) -> int:
        q = select(func.count()).select_from(Agendamento)
        if conditions:
            q = q.where(*conditions)
        result = await session.execute(q)
        return int(result.scalar_one())

    async def _reset_id_sequence(self, session: AsyncSession) -> None:
        statement = _RESET_SEQUENCE_SQL.get(self._engine.dialect.name)
        if statement is not None:
            await session.execute(statement)

    async def startup(self) -> None:
        try:
            await init_db(self._engine)
        except (SQLAlchemyError, OSError) as e:
            logger.exception("Database initialization failed: %s", e)
            raise StorageError(str(e)) from e
        logger.info("Database initialized (%s)", self.backend_name)

    async def shutdown(self) -> None:
        await self._engine.dispose()

    async def health(self) -> dict[str, Any]:
        try:
            return {"db_version": await server_version(self._engine)}
        except (SQLAlchemyError, OSError) as e:
            raise StorageError(str(e)) from e

    async def count(self) -> int:
        async with self._session() as session:
            return await self._count_where(session)

    async def list_agendamentos(self, filters: AgendamentoFilters, limit: int) -> list[AgendamentoPublic]:
        q = select(Agendamento)
        if filters.status:
            q = q.where(Agendamento.status == filters.status)
        if filters.data:
            start, end = day_bounds(filters.data)
            q = q.where(Agendamento.data_agendamento >= start, Agendamento.data_agendamento < end)
        if filters.nome:
            q = q.where(Agendamento.nome.icontains(filters.nome, autoescape=True))
        q = q.order_by(Agendamento.data_agendamento, Agendamento.id).limit(limit)
        async with self._session() as session:
            result = await session.execute(q)
            return [_to_public(row) for row in result.scalars().all()]

    async def get(self, agendamento_id: int) -> AgendamentoPublic:
        async with self._session() as session:
            return _to_public(await self._get_row(session, agendamento_id))

    async def create(self, data: AgendamentoCreate) -> AgendamentoPublic:
        fields = build_new_agendamento(data, utc_naive_now())
        async with self._session() as session:
            row = Agendamento(**fields)
            session.add(row)
            await session.commit()
            await session.refresh(row)
            logger.info("Agendamento %d created for %s", row.id, row.data_agendamento)
            return _to_public(row)

    async def update(self, agendamento_id: int, partial: AgendamentoUpdate) -> AgendamentoPublic:
        async with self._session() as session:
            row = await self._get_row(session, agendamento_id)
            changes = merge_update(_to_public(row), partial, utc_naive_now())
            for field, value in changes.items():
                setattr(row, field, value)
            await session.commit()
            await session.refresh(row)
            logger.info("Agendamento %d updated (%s)", agendamento_id, ", ".join(sorted(changes)))
            return _to_public(row)

    async def delete(self, agendamento_id: int) -> None:
        async with self._session() as session:
            row = await self._get_row(session, agendamento_id)
            await session.delete(row)
            await session.commit()
            logger.info("Agendamento %d deleted", agendamento_id)

    async def clear(self) -> None:
        async with self._session() as session:
            if self._engine.dialect.name == "postgresql":
                await session.execute(text("TRUNCATE TABLE agendamentos RESTART IDENTITY"))
            else:
                await session.execute(delete(Agendamento))
                await self._reset_id_sequence(session)
            await session.commit()
            logger.info("Table agendamentos cleared")

    async def backup(self) -> BackupSnapshot:
        async with self._session() as session:
            result = await session.execute(select(Agendamento).order_by(Agendamento.id))
            agendamentos = [_to_public(row) for row in result.scalars().all()]
        return BackupSnapshot(
            timestamp=utc_naive_now(),
            total_agendamentos=len(agendamentos),
            agendamentos=agendamentos,
        )

    async def restore(self, payload: Any) -> int:
        # Validate everything before the table is touched
        records, _ = parse_snapshot(payload, utc_naive_now())
        async with self._session() as session:
            try:
                await session.execute(delete(Agendamento))
                session.add_all([Agendamento(**r.model_dump()) for r in records])
                await session.flush()
                await self._reset_id_sequence(session)
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                logger.warning("Restore rolled back: %s", e.orig)
                raise InvalidBackupError(str(e.orig)) from e
            except Exception:
                await session.rollback()
                raise
        logger.info("Table agendamentos restored with %d record(s)", len(records))
        return len(records)

    async def stats(self) -> AgendamentoStats:
        now = utc_naive_now()
        today_start, today_end = day_bounds(now.date())
        async with self._session() as session:
            total = await self._count_where(session)
            result = await session.execute(
                select(Agendamento.status, func.count()).group_by(Agendamento.status)
            )
            por_status = {status: int(n) for status, n in result.all()}
            hoje = await self._count_where(
                session,
                Agendamento.data_agendamento >= today_start,
                Agendamento.data_agendamento < today_end,
            )
            proximos = await self._count_where(
                session,
                Agendamento.data_agendamento >= now,
                Agendamento.data_agendamento <= now + UPCOMING_WINDOW,
            )
        return AgendamentoStats(total=total, por_status=por_status, proximos_7_dias=proximos, hoje=hoje)
