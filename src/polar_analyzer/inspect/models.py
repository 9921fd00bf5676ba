from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class RuleLocation(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    filename: str | None = None
    start: int = Field(default=0, ge=0)
    end: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _validate_span_order(self) -> RuleLocation:
        if self.end < self.start:
            raise ValueError("rule location end must be >= start")
        return self


class RuleInfo(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    symbol: str = Field(min_length=1)
    signature: str
    free_variables: tuple[str, ...] = ()
    location: RuleLocation = RuleLocation()

    @field_validator("free_variables", mode="before")
    @classmethod
    def _sort_free_variables(cls, value: object) -> object:
        if isinstance(value, set | frozenset | list | tuple):
            return tuple(sorted(value))
        return value
