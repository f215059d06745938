"""Error taxonomy shared by the engine, the HTTP API and the CLI."""

from __future__ import annotations

from enum import Enum
from typing import Iterable, List

from pydantic import BaseModel, ConfigDict


class ErrorKind(str, Enum):
    MALFORMED_DATE = "MalformedDate"
    FUTURE_BIRTH_DATE = "FutureBirthDate"
    INVALID_AGE = "InvalidAge"
    INVALID_YEAR = "InvalidYear"
    INVALID_RATE = "InvalidRate"
    INVALID_CONTRIBUTION = "InvalidContribution"
    INVALID_SAVINGS = "InvalidSavings"
    INVALID_NAME = "InvalidName"
    PAST_TARGET_DATE = "PastTargetDate"


class ValidationIssue(BaseModel):
    """One problem found with one input field."""

    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    field: str
    message: str


class InvalidArgument(ValueError):
    """Raised by the calendar and annuity primitives on unusable arguments."""


class PlanValidationError(ValueError):
    def __init__(self, errors: Iterable[ValidationIssue]):
        self.errors: List[ValidationIssue] = list(errors)
        super().__init__("; ".join(issue.message for issue in self.errors))

    @property
    def kinds(self) -> List[ErrorKind]:
        return [issue.kind for issue in self.errors]
