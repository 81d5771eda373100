"""Tipos de error del núcleo de caja.

Todos llevan un `message` legible para el usuario. Las rutas los traducen
a códigos HTTP, pero internamente se mantienen separados: no es lo mismo
un dato inválido que un fallo a medias del almacén.
"""

from __future__ import annotations


class CashFlowError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CashFlowError):
    """Entrada inválida o operación sobre un estado incorrecto."""


class NotFoundError(CashFlowError):
    """Registro o movimiento inexistente."""


class PersistenceError(CashFlowError):
    """Falló la llamada al almacén clave-valor."""


class ConcurrentUpdateError(PersistenceError):
    """Otra escritura llegó antes (la versión leída ya no es la vigente)."""

    def __init__(self, message: str, *, key: str, expected: int | None, actual: int | None):
        super().__init__(message)
        self.key = key
        self.expected = expected
        self.actual = actual


class PartialFailureError(PersistenceError):
    """Borrado en dos pasos donde solo el primero se aplicó.

    `completed` son las claves que ya se borraron, `pending` las que quedaron.
    """

    def __init__(self, message: str, *, completed: list[str], pending: list[str]):
        super().__init__(message)
        self.completed = list(completed)
        self.pending = list(pending)
