"""Pydantic schemas for YAML problem files."""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .scheduler.config import SchedulingConfig

# "a -> b" or "a -> b @ 2"
DEPENDENCE_PATTERN = re.compile(r"^\s*(\S+)\s*->\s*(\S+)\s*(?:@\s*(\d+)\s*)?$")


class OperatorTypeSchema(BaseModel):
    """Schema for one operator type."""

    latency: int
    limit: int | None = None


class OperationSchema(BaseModel):
    """Schema for one operation."""

    name: str
    type: str


class DependenceSchema(BaseModel):
    """Schema for one dependence."""

    model_config = ConfigDict(populate_by_name=True)

    source: str = Field(alias="from")
    destination: str = Field(alias="to")
    distance: int = 0

    @classmethod
    def parse(cls, text: str) -> DependenceSchema:
        """Parse the "src -> dst" / "src -> dst @ distance" shorthand."""
        match = DEPENDENCE_PATTERN.match(text)
        if not match:
            raise ValueError(f"Invalid dependence '{text}', expected 'src -> dst [@ distance]'")
        source, destination, distance = match.groups()
        return cls(source=source, destination=destination, distance=int(distance or 0))


class ProblemSchema(BaseModel):
    """Schema for an entire problem file."""

    name: str = "problem"
    operator_types: dict[str, OperatorTypeSchema] = Field(default_factory=dict)
    operations: list[OperationSchema] = Field(default_factory=list)
    dependences: list[DependenceSchema] = Field(default_factory=list)
    last_operation: str | None = None
    scheduler: SchedulingConfig | None = None

    @field_validator("dependences", mode="before")
    @classmethod
    def expand_shorthand(cls, v: Any) -> Any:
        """Turn "src -> dst @ n" strings into dependence mappings."""
        if v is None:
            return []
        if not isinstance(v, list):
            return v
        return [DependenceSchema.parse(item) if isinstance(item, str) else item for item in v]

    @field_validator("operator_types", mode="before")
    @classmethod
    def expand_latency_shorthand(cls, v: Any) -> Any:
        """Accept a bare latency in place of an operator type mapping."""
        if v is None:
            return {}
        if not isinstance(v, dict):
            return v
        return {
            name: {"latency": entry} if isinstance(entry, int) else entry
            for name, entry in v.items()  # type: ignore[misc]
        }

    @field_validator("operations", mode="before")
    @classmethod
    def ensure_list(cls, v: Any) -> Any:
        """Accept a mapping of operation name to operator type."""
        if v is None:
            return []
        if isinstance(v, dict):
            return [{"name": name, "type": type_name} for name, type_name in v.items()]
        return v
