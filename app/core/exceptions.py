"""
Domain exceptions for the agenda API.

Each exception carries the HTTP status the routing layer answers with, so
handlers in ``app.main`` only need to shape the JSON envelope.
"""

from fastapi import status


class AgendaError(Exception):
    """Base exception for every error raised by the record stores."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class AgendamentoValidationError(AgendaError):
    """Missing required fields, past-dated appointment or malformed snapshot."""

    status_code = status.HTTP_400_BAD_REQUEST


class MissingFieldsError(AgendamentoValidationError):
    def __init__(self, fields: list[str]):
        self.fields = fields
        super().__init__(f"Campos obrigatórios: {', '.join(fields)}")


class PastDateError(AgendamentoValidationError):
    def __init__(self):
        super().__init__("Data do agendamento deve ser futura")


class InvalidBackupError(AgendamentoValidationError):
    def __init__(self, details: str | None = None):
        message = "Formato de backup inválido"
        if details:
            message = f"{message}: {details}"
        super().__init__(message)


class AgendamentoNotFoundError(AgendaError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, agendamento_id: int | None = None):
        self.agendamento_id = agendamento_id
        super().__init__("Agendamento não encontrado")


class StorageError(AgendaError):
    """Database or connection failure; the driver message is passed through."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
