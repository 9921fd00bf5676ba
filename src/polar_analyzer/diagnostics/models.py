from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Severity(StrEnum):
    ERROR = "error"
    WARNING = "warning"


class Diagnostic(BaseModel):
    """A problem found in one source text.

    Offsets index the analysed text; ``start == end == 0`` marks an error whose
    location is unknown.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    message: str = Field(min_length=1)
    start: int = Field(ge=0)
    end: int = Field(ge=0)

    @model_validator(mode="after")
    def _validate_span_order(self) -> Diagnostic:
        if self.end < self.start:
            raise ValueError("diagnostic end must be >= start")
        return self

    @classmethod
    def unlocated(cls, message: str) -> Diagnostic:
        return cls(message=message, start=0, end=0)

    @property
    def is_unlocated(self) -> bool:
        return self.start == 0 and self.end == 0

    def as_tuple(self) -> tuple[str, int, int]:
        return (self.message, self.start, self.end)


class LoadResult(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    errors: tuple[Diagnostic, ...] = ()
    unused_rules: tuple[Diagnostic, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors
