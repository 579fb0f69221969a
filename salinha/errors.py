from __future__ import annotations

from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Iterable

from .models import ReservationRecord

KIND_PERMISSION_DENIED = "permission-denied"
KIND_UNAVAILABLE = "unavailable"
KIND_NETWORK = "network"
KIND_NOT_FOUND = "not-found"
KIND_UNKNOWN = "unknown"

REPOSITORY_MESSAGES = {
    KIND_PERMISSION_DENIED: "Acesso ao banco de dados negado. Verifique as permissões de armazenamento.",
    KIND_UNAVAILABLE: "Banco de dados temporariamente indisponível. Tente novamente.",
    KIND_NETWORK: "Erro de rede. Verifique sua conexão com a internet.",
    KIND_NOT_FOUND: "Reserva não encontrada.",
    KIND_UNKNOWN: "Falha ao acessar as reservas. Tente novamente.",
}

CONFLICT_MESSAGE = "Conflito de horário detectado. Por favor, escolha um horário diferente."


class ReservationError(Exception):
    """Base class for every failure a caller is expected to show to a user."""

    def __init__(self, user_message: str) -> None:
        super().__init__(user_message)
        self.user_message = user_message


class ValidationError(ReservationError, ValueError):
    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = dict(errors)
        first_field = next(iter(self.errors), None)
        message = self.errors[first_field] if first_field else "Dados de reserva inválidos."
        super().__init__(message)


class ConflictError(ReservationError):
    def __init__(self, conflicting: Iterable[ReservationRecord] = ()) -> None:
        super().__init__(CONFLICT_MESSAGE)
        self.conflicting = list(conflicting)


class RepositoryError(ReservationError):
    def __init__(self, kind: str, detail: str | None = None) -> None:
        if kind not in REPOSITORY_MESSAGES:
            kind = KIND_UNKNOWN
        super().__init__(REPOSITORY_MESSAGES[kind])
        self.kind = kind
        self.detail = detail

    def __str__(self) -> str:
        if self.detail:
            return f"{self.user_message} ({self.detail})"
        return self.user_message


def classify_repository_error(error: BaseException) -> RepositoryError:
    """Map an arbitrary storage failure onto a ``RepositoryError`` kind.

    Type checks come first. Otherwise the message is scanned for the
    error codes document stores put in their exception text.
    """
    if isinstance(error, RepositoryError):
        return error
    if isinstance(error, PermissionError):
        return RepositoryError(KIND_PERMISSION_DENIED, str(error))
    if isinstance(error, (TimeoutError, FutureTimeoutError)):
        return RepositoryError(KIND_UNAVAILABLE, "Request timed out")
    if isinstance(error, ConnectionError):
        return RepositoryError(KIND_NETWORK, str(error))

    text = str(error).lower()
    if "permission-denied" in text or "permission denied" in text:
        return RepositoryError(KIND_PERMISSION_DENIED, str(error))
    if "unavailable" in text:
        return RepositoryError(KIND_UNAVAILABLE, str(error))
    if "network" in text:
        return RepositoryError(KIND_NETWORK, str(error))
    if "not-found" in text:
        return RepositoryError(KIND_NOT_FOUND, str(error))
    if isinstance(error, OSError):
        return RepositoryError(KIND_UNAVAILABLE, str(error))
    return RepositoryError(KIND_UNKNOWN, str(error))
