from __future__ import annotations

import re


class LedgerError(Exception):
    category = "internal"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message())

    @classmethod
    def default_message(cls) -> str:
        return cls.__doc__ or cls.__name__

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else self.default_message()


class ValidationFailure(LedgerError):
    category = "validation"


class PreconditionFailure(LedgerError):
    category = "precondition"


class StateConflict(LedgerError):
    category = "state_conflict"


class ExternalDependencyFailure(LedgerError):
    category = "external_dependency"


class InvariantViolation(LedgerError):
    category = "invariant"


def error_code(error: LedgerError) -> str:
    name = type(error).__name__.removesuffix("Error")
    return "E_" + re.sub(r"(?<!^)(?=[A-Z])", "_", name).upper()
