from collections import Counter
from collections.abc import Iterable
from datetime import date, datetime, timedelta
from typing import Any

from pydantic import ValidationError

from app.core.exceptions import (
    AgendamentoValidationError,
    InvalidBackupError,
    MissingFieldsError,
    PastDateError,
)
from app.models.agendamento import (
    STATUS_AGENDADO,
    AgendamentoCreate,
    AgendamentoFilters,
    AgendamentoPublic,
    AgendamentoSnapshotItem,
    AgendamentoStats,
    AgendamentoUpdate,
    to_naive_utc,
)

REQUIRED_FIELDS = ("nome", "servico", "data_agendamento")
DEFAULTED_FIELDS = ("status", "criado_em", "atualizado_em")
OPTIONAL_TEXT_FIELDS = ("telefone", "email", "observacoes")
UPCOMING_WINDOW = timedelta(days=7)


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def validate_agendamento(data: dict[str, Any], now: datetime) -> None:
    """Required fields present and data_agendamento strictly after ``now``."""
    missing = [field for field in REQUIRED_FIELDS if _is_blank(data.get(field))]
    if missing:
        raise MissingFieldsError(missing)
    if data["data_agendamento"] <= now:
        raise PastDateError()


def _clean_optional(value: str | None) -> str | None:
    return None if _is_blank(value) else value


def build_new_agendamento(data: AgendamentoCreate, now: datetime) -> dict[str, Any]:
    """Validate a creation request and return the column values of the new record (id excluded)."""
    fields = data.model_dump()
    validate_agendamento(fields, now)
    return {
        "nome": data.nome,
        "telefone": _clean_optional(data.telefone),
        "email": _clean_optional(data.email),
        "servico": data.servico,
        "data_agendamento": data.data_agendamento,
        "observacoes": _clean_optional(data.observacoes),
        "status": STATUS_AGENDADO if _is_blank(data.status) else data.status,
        "criado_em": now,
        "atualizado_em": now,
    }


def merge_update(existing: AgendamentoPublic, partial: AgendamentoUpdate, now: datetime) -> dict[str, Any]:
    """Return the fields to overwrite on ``existing``; atualizado_em always advances."""
    changes = partial.model_dump(exclude_unset=True)
    for field in OPTIONAL_TEXT_FIELDS:
        if field in changes:
            changes[field] = _clean_optional(changes[field])
    if "status" in changes and _is_blank(changes["status"]):
        changes["status"] = STATUS_AGENDADO

    merged = {**existing.model_dump(), **changes}
    blanked = [field for field in REQUIRED_FIELDS if field in changes and _is_blank(changes[field])]
    if blanked:
        raise MissingFieldsError(blanked)
    if "data_agendamento" in changes:
        validate_agendamento(merged, now)

    # Same-microsecond updates still have to move the timestamp forward
    previous = existing.atualizado_em
    changes["atualizado_em"] = now if now > previous else previous + timedelta(microseconds=1)
    return changes


def parse_date_filter(value: str | None) -> date | None:
    """Accept YYYY-MM-DD or a full ISO timestamp; only the calendar day is kept."""
    if _is_blank(value):
        return None
    try:
        return to_naive_utc(datetime.fromisoformat(value.strip())).date()
    except ValueError:
        raise AgendamentoValidationError(f"Data inválida: {value}") from None


def day_bounds(d: date) -> tuple[datetime, datetime]:
    start = datetime(d.year, d.month, d.day, 0, 0, 0)
    return start, start + timedelta(days=1)


def matches_filters(agendamento: AgendamentoPublic, filters: AgendamentoFilters) -> bool:
    if filters.status and agendamento.status != filters.status:
        return False
    if filters.data and agendamento.data_agendamento.date() != filters.data:
        return False
    if filters.nome and filters.nome.lower() not in agendamento.nome.lower():
        return False
    return True


def compute_stats(agendamentos: Iterable[AgendamentoPublic], now: datetime) -> AgendamentoStats:
    today = now.date()
    window_end = now + UPCOMING_WINDOW
    por_status: Counter[str] = Counter()
    total = hoje = proximos = 0
    for a in agendamentos:
        total += 1
        por_status[a.status] += 1
        if a.data_agendamento.date() == today:
            hoje += 1
        if now <= a.data_agendamento <= window_end:
            proximos += 1
    return AgendamentoStats(
        total=total,
        por_status=dict(por_status),
        proximos_7_dias=proximos,
        hoje=hoje,
    )


def parse_snapshot(payload: Any, now: datetime) -> tuple[list[AgendamentoPublic], int | None]:
    """Validate a backup payload.

    Returns the records with ids assigned (records without id are numbered after the
    highest supplied id, in order) and the snapshot's ``next_id`` if it carried one.
    Raises InvalidBackupError before anything is replaced.
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("agendamentos"), list):
        raise InvalidBackupError()

    items: list[AgendamentoSnapshotItem] = []
    for position, raw in enumerate(payload["agendamentos"]):
        if not isinstance(raw, dict):
            raise InvalidBackupError(f"registro {position} não é um objeto")
        # null status or timestamps fall back to their defaults
        raw = {k: v for k, v in raw.items() if not (v is None and k in DEFAULTED_FIELDS)}
        raw.setdefault("criado_em", now)
        raw.setdefault("atualizado_em", raw["criado_em"])
        try:
            items.append(AgendamentoSnapshotItem.model_validate(raw))
        except ValidationError as e:
            fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
            raise InvalidBackupError(f"registro {position} ({', '.join(fields)})") from None
        if items[-1].atualizado_em < items[-1].criado_em:
            raise InvalidBackupError(f"registro {position} (atualizado_em anterior a criado_em)")

    next_id = payload.get("next_id")
    if next_id is not None and (isinstance(next_id, bool) or not isinstance(next_id, int) or next_id < 1):
        raise InvalidBackupError("next_id deve ser um inteiro positivo")

    seen: set[int] = set()
    for item in items:
        if item.id is None:
            continue
        if item.id in seen:
            raise InvalidBackupError(f"id duplicado {item.id}")
        seen.add(item.id)

    following = max(seen, default=0) + 1
    records: list[AgendamentoPublic] = []
    for item in items:
        data = item.model_dump()
        if data["id"] is None:
            data["id"] = following
            following += 1
        records.append(AgendamentoPublic.model_validate(data))
    return records, next_id


def next_id_after(records: Iterable[AgendamentoPublic]) -> int:
    return max((r.id for r in records), default=0) + 1


def sample_agendamentos(now: datetime) -> list[AgendamentoCreate]:
    """Example records used to seed an empty store."""
    return [
        AgendamentoCreate(
            nome="João Silva",
            telefone="(11) 99999-9999",
            email="joao@email.com",
            servico="Consulta Médica",
            data_agendamento=now + timedelta(days=1),
            observacoes="Primeira consulta",
        ),
        AgendamentoCreate(
            nome="Maria Santos",
            telefone="(11) 88888-8888",
            email="maria@email.com",
            servico="Exame de Rotina",
            data_agendamento=now + timedelta(days=2),
            observacoes="Exame anual",
        ),
    ]
