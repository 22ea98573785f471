"""Contract tests run against both the memory and the database stores."""
from datetime import datetime, timedelta

import pytest

from app.core.exceptions import (
    AgendamentoNotFoundError,
    InvalidBackupError,
    MissingFieldsError,
    PastDateError,
)
from app.models.agendamento import AgendamentoFilters, AgendamentoUpdate, utc_naive_now
from tests.conftest import future, make_create

NO_FILTERS = AgendamentoFilters()


# ===========================================================================
# Create
# ===========================================================================

class TestCreate:

    @pytest.mark.asyncio
    async def test_assigns_sequential_ids_and_defaults(self, store):
        first = await store.create(make_create())
        second = await store.create(make_create(nome="Bruno"))

        assert first.id == 1
        assert second.id == 2
        assert first.status == "agendado"
        assert first.telefone is None
        assert first.email is None
        assert first.observacoes is None
        assert first.criado_em == first.atualizado_em

    @pytest.mark.asyncio
    async def test_ids_are_not_reused_after_delete(self, store):
        await store.create(make_create())
        second = await store.create(make_create())
        await store.delete(second.id)

        third = await store.create(make_create())
        assert third.id == 3

    @pytest.mark.asyncio
    async def test_keeps_supplied_status_and_optional_fields(self, store):
        created = await store.create(
            make_create(status="confirmado", telefone="(11) 1234-5678", email="ana@email.com")
        )
        assert created.status == "confirmado"
        assert created.telefone == "(11) 1234-5678"
        assert created.email == "ana@email.com"

    @pytest.mark.asyncio
    async def test_blank_status_becomes_default(self, store):
        created = await store.create(make_create(status="   "))
        assert created.status == "agendado"

    @pytest.mark.asyncio
    async def test_past_date_is_rejected(self, store):
        with pytest.raises(PastDateError):
            await store.create(make_create(data_agendamento=utc_naive_now() - timedelta(hours=1)))
        assert await store.count() == 0

    @pytest.mark.asyncio
    async def test_missing_fields_are_listed(self, store):
        with pytest.raises(MissingFieldsError) as exc_info:
            await store.create(make_create(nome=None, servico="  "))
        assert exc_info.value.fields == ["nome", "servico"]
        assert "nome, servico" in exc_info.value.message


# ===========================================================================
# Get / Update / Delete
# ===========================================================================

class TestGetUpdateDelete:

    @pytest.mark.asyncio
    async def test_get_returns_record(self, store):
        created = await store.create(make_create())
        found = await store.get(created.id)
        assert found == created

    @pytest.mark.asyncio
    @pytest.mark.parametrize("operation", ["get", "update", "delete"])
    async def test_unknown_id_is_not_found(self, store, operation):
        await store.create(make_create())
        with pytest.raises(AgendamentoNotFoundError):
            if operation == "update":
                await store.update(42, AgendamentoUpdate(status="cancelado"))
            else:
                await getattr(store, operation)(42)

    @pytest.mark.asyncio
    async def test_update_preserves_other_fields_and_advances_timestamp(self, store):
        created = await store.create(make_create(telefone="(11) 1111-1111"))

        updated = await store.update(created.id, AgendamentoUpdate(status="confirmado"))

        assert updated.status == "confirmado"
        assert updated.nome == created.nome
        assert updated.telefone == created.telefone
        assert updated.data_agendamento == created.data_agendamento
        assert updated.criado_em == created.criado_em
        assert updated.atualizado_em > created.atualizado_em

    @pytest.mark.asyncio
    async def test_update_ignores_id_and_criado_em(self, store):
        created = await store.create(make_create())
        partial = AgendamentoUpdate.model_validate(
            {"id": 99, "criado_em": "2000-01-01T00:00:00", "coluna_inexistente": "x", "nome": "Ana Maria"}
        )

        updated = await store.update(created.id, partial)

        assert updated.id == created.id
        assert updated.criado_em == created.criado_em
        assert updated.nome == "Ana Maria"

    @pytest.mark.asyncio
    async def test_update_with_past_date_is_rejected(self, store):
        created = await store.create(make_create())
        with pytest.raises(PastDateError):
            await store.update(
                created.id, AgendamentoUpdate(data_agendamento=utc_naive_now() - timedelta(days=1))
            )
        assert (await store.get(created.id)).data_agendamento == created.data_agendamento

    @pytest.mark.asyncio
    async def test_update_with_new_future_date(self, store):
        created = await store.create(make_create())
        new_date = future(days=3)
        updated = await store.update(created.id, AgendamentoUpdate(data_agendamento=new_date))
        assert updated.data_agendamento == new_date

    @pytest.mark.asyncio
    async def test_update_without_date_skips_future_check(self, store):
        # Restored records may already be in the past
        await store.restore({"agendamentos": [
            {"id": 1, "nome": "Ana", "servico": "Exame", "data_agendamento": "2020-01-01T10:00:00"},
        ]})
        updated = await store.update(1, AgendamentoUpdate(status="concluido"))
        assert updated.status == "concluido"

    @pytest.mark.asyncio
    async def test_update_cannot_blank_required_field(self, store):
        created = await store.create(make_create())
        with pytest.raises(MissingFieldsError):
            await store.update(created.id, AgendamentoUpdate(nome=""))

    @pytest.mark.asyncio
    async def test_delete_removes_record(self, store):
        created = await store.create(make_create())
        await store.delete(created.id)
        with pytest.raises(AgendamentoNotFoundError):
            await store.get(created.id)
        assert await store.count() == 0


# ===========================================================================
# List
# ===========================================================================

class TestList:

    @pytest.mark.asyncio
    async def test_limit_and_ascending_order(self, store):
        for days in (5, 3, 1, 4, 2):
            await store.create(make_create(nome=f"Cliente {days}", data_agendamento=future(days=days)))

        result = await store.list_agendamentos(NO_FILTERS, 2)

        assert len(result) == 2
        assert [a.nome for a in result] == ["Cliente 1", "Cliente 2"]

    @pytest.mark.asyncio
    async def test_filter_by_status(self, store):
        await store.create(make_create(status="confirmado"))
        await store.create(make_create())

        result = await store.list_agendamentos(AgendamentoFilters(status="confirmado"), 50)
        assert [a.status for a in result] == ["confirmado"]

    @pytest.mark.asyncio
    async def test_filter_by_name_is_case_insensitive_substring(self, store):
        await store.create(make_create(nome="Ana Paula"))
        await store.create(make_create(nome="Bruno"))

        result = await store.list_agendamentos(AgendamentoFilters(nome="PAUL"), 50)
        assert [a.nome for a in result] == ["Ana Paula"]

    @pytest.mark.asyncio
    async def test_filter_by_calendar_day(self, store):
        target = future(days=3)
        await store.create(make_create(nome="No dia", data_agendamento=target))
        await store.create(make_create(nome="Outro dia", data_agendamento=future(days=5)))

        result = await store.list_agendamentos(AgendamentoFilters(data=target.date()), 50)
        assert [a.nome for a in result] == ["No dia"]

    @pytest.mark.asyncio
    async def test_empty_result(self, store):
        assert await store.list_agendamentos(AgendamentoFilters(status="inexistente"), 50) == []


# ===========================================================================
# Clear / Backup / Restore
# ===========================================================================

class TestClearBackupRestore:

    @pytest.mark.asyncio
    async def test_clear_resets_ids(self, store):
        await store.create(make_create())
        await store.create(make_create())

        await store.clear()

        assert await store.count() == 0
        assert (await store.create(make_create())).id == 1

    @pytest.mark.asyncio
    async def test_backup_contents(self, store):
        created = await store.create(make_create())
        snapshot = await store.backup()
        assert snapshot.total_agendamentos == 1
        assert snapshot.agendamentos == [created]

    @pytest.mark.asyncio
    async def test_backup_restore_round_trip(self, store):
        await store.create(make_create(nome="Ana"))
        second = await store.create(make_create(nome="Bruno"))
        await store.create(make_create(nome="Carla"))
        await store.delete(second.id)
        snapshot = await store.backup()

        await store.clear()
        restored = await store.restore(snapshot.model_dump(mode="json"))

        assert restored == 2
        assert (await store.backup()).agendamentos == snapshot.agendamentos
        # ids continue after the highest restored id
        assert (await store.create(make_create())).id == 4

    @pytest.mark.asyncio
    async def test_restore_replaces_existing_records(self, store):
        await store.create(make_create(nome="Antigo"))
        await store.restore({"agendamentos": [
            {"id": 7, "nome": "Novo", "servico": "Exame", "data_agendamento": future(days=2).isoformat()},
        ]})

        result = await store.list_agendamentos(NO_FILTERS, 50)
        assert [(a.id, a.nome, a.status) for a in result] == [(7, "Novo", "agendado")]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        {},
        {"agendamentos": "nao e lista"},
        {"agendamentos": [{"nome": "Sem servico"}]},
        {"agendamentos": [{
            "nome": "A", "servico": "X", "data_agendamento": "2030-01-02T10:00:00",
            "criado_em": "2030-01-01T00:00:00", "atualizado_em": "2020-01-01T00:00:00",
        }]},
        {"agendamentos": [
            {"id": 1, "nome": "A", "servico": "X", "data_agendamento": "2030-01-01T10:00:00"},
            {"id": 1, "nome": "B", "servico": "X", "data_agendamento": "2030-01-02T10:00:00"},
        ]},
        [],
    ])
    async def test_invalid_snapshot_leaves_store_untouched(self, store, payload):
        created = await store.create(make_create())

        with pytest.raises(InvalidBackupError):
            await store.restore(payload)

        assert (await store.backup()).agendamentos == [created]

    @pytest.mark.asyncio
    async def test_restore_empty_list(self, store):
        await store.create(make_create())
        assert await store.restore({"agendamentos": []}) == 0
        assert await store.count() == 0
        assert (await store.create(make_create())).id == 1


# ===========================================================================
# Stats
# ===========================================================================

class TestStats:

    @pytest.mark.asyncio
    async def test_record_dated_today(self, store):
        await store.restore({"agendamentos": [
            {"nome": "Ana", "servico": "Exame", "data_agendamento": utc_naive_now().isoformat()},
        ]})

        stats = await store.stats()

        assert stats.total == 1
        assert stats.hoje == 1
        assert stats.por_status == {"agendado": 1}

    @pytest.mark.asyncio
    async def test_counts_by_status_and_upcoming_window(self, store):
        await store.create(make_create(data_agendamento=future(days=2)))
        await store.create(make_create(data_agendamento=future(days=6), status="confirmado"))
        await store.create(make_create(data_agendamento=future(days=10)))

        stats = await store.stats()

        assert stats.total == 3
        assert stats.por_status == {"agendado": 2, "confirmado": 1}
        assert stats.proximos_7_dias == 2

    @pytest.mark.asyncio
    async def test_upcoming_window_is_inclusive(self, store, monkeypatch):
        now = datetime(2030, 1, 1, 12, 0, 0)
        monkeypatch.setattr("app.services.memory_store.utc_naive_now", lambda: now)
        monkeypatch.setattr("app.services.database_store.utc_naive_now", lambda: now)
        dates = [
            now - timedelta(microseconds=1),
            now,
            now + timedelta(days=7),
            now + timedelta(days=7, microseconds=1),
        ]
        await store.restore({"agendamentos": [
            {"nome": f"Cliente {i}", "servico": "Exame", "data_agendamento": d.isoformat()}
            for i, d in enumerate(dates)
        ]})

        stats = await store.stats()

        assert stats.total == 4
        assert stats.proximos_7_dias == 2
        assert stats.hoje == 2

    @pytest.mark.asyncio
    async def test_empty_store(self, store):
        stats = await store.stats()
        assert stats.total == 0
        assert stats.por_status == {}
        assert stats.hoje == 0
        assert stats.proximos_7_dias == 0
