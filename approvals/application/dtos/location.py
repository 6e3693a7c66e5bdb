"""DTOs for the location hierarchy (no dependency on ORM)."""

from dataclasses import dataclass


@dataclass(frozen=True)
class LocationResult:
    """Location read-model."""

    id: str
    name: str
    parent_id: str | None
    path: str
    level: int
    status: str
