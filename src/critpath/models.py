"""Task, dependency and result records."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, timedelta

DAY = timedelta(days=1)


class DependencyType(enum.StrEnum):
    FINISH_TO_START = "finish-to-start"
    START_TO_START = "start-to-start"
    FINISH_TO_FINISH = "finish-to-finish"
    START_TO_FINISH = "start-to-finish"

    @classmethod
    def parse(cls, value: str) -> DependencyType:
        """Accept either the full name or the FS/SS/FF/SF abbreviation."""
        if isinstance(value, DependencyType):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Unknown dependency type: {value!r}")
        key = value.strip().lower()
        if key in _ABBREVIATIONS:
            return _ABBREVIATIONS[key]
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown dependency type: {value!r}") from None


_ABBREVIATIONS = {
    "fs": DependencyType.FINISH_TO_START,
    "ss": DependencyType.START_TO_START,
    "ff": DependencyType.FINISH_TO_FINISH,
    "sf": DependencyType.START_TO_FINISH,
}


def _parse_instant(value: datetime | str) -> datetime:
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Expected an ISO-8601 instant, got {value!r}")
    return datetime.fromisoformat(value)


@dataclass(frozen=True)
class Task:
    """A task with fixed start and end instants."""

    id: str
    name: str
    start_at: datetime
    end_at: datetime
    status: str | None = None
    group: str | None = None
    owner: str | None = None
    description: str | None = None
    progress: float | None = None

    def __post_init__(self):
        start = _parse_instant(self.start_at)
        end = _parse_instant(self.end_at)
        if end < start:
            raise ValueError(f"Task {self.id} ends before it starts")
        object.__setattr__(self, "start_at", start)
        object.__setattr__(self, "end_at", end)

    @property
    def duration(self) -> timedelta:
        return self.end_at - self.start_at

    def to_dict(self) -> dict:
        d = {
            "id": self.id,
            "name": self.name,
            "start_at": self.start_at.isoformat(),
            "end_at": self.end_at.isoformat(),
        }
        for key in ("status", "group", "owner", "description", "progress"):
            value = getattr(self, key)
            if value is not None:
                d[key] = value
        return d

    @classmethod
    def from_dict(cls, d: dict) -> Task:
        return cls(
            id=str(d["id"]),
            name=d.get("name", str(d["id"])),
            start_at=_parse_instant(d["start_at"]),
            end_at=_parse_instant(d["end_at"]),
            status=d.get("status"),
            group=d.get("group"),
            owner=d.get("owner"),
            description=d.get("description"),
            progress=d.get("progress"),
        )


@dataclass(frozen=True)
class Dependency:
    """A precedence relation: *successor_id* is constrained by *predecessor_id*."""

    predecessor_id: str
    successor_id: str
    type: DependencyType = DependencyType.FINISH_TO_START
    lag: float = 0.0  # days, may be negative

    def __post_init__(self):
        object.__setattr__(self, "type", DependencyType.parse(self.type))
        object.__setattr__(self, "lag", float(self.lag or 0.0))

    @property
    def lag_delta(self) -> timedelta:
        return timedelta(days=self.lag)

    def to_dict(self) -> dict:
        return {
            "predecessor_id": self.predecessor_id,
            "successor_id": self.successor_id,
            "type": self.type.value,
            "lag": self.lag,
        }

    @classmethod
    def from_dict(cls, d: dict) -> Dependency:
        return cls(
            predecessor_id=str(d["predecessor_id"]),
            successor_id=str(d["successor_id"]),
            type=DependencyType.parse(d.get("type", DependencyType.FINISH_TO_START.value)),
            lag=float(d.get("lag") or 0.0),
        )


@dataclass(frozen=True)
class CriticalPathResult:
    """Slack (in days) and criticality of one task."""

    task_id: str
    slack: float
    is_critical: bool

    def to_dict(self) -> dict:
        return {"task_id": self.task_id, "slack": self.slack, "is_critical": self.is_critical}

    @classmethod
    def from_dict(cls, d: dict) -> CriticalPathResult:
        return cls(
            task_id=str(d["task_id"]),
            slack=float(d["slack"]),
            is_critical=bool(d["is_critical"]),
        )


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    circular_dependencies: list[str] | None = None

    def to_dict(self) -> dict:
        d: dict = {"valid": self.valid}
        if self.circular_dependencies is not None:
            d["circular_dependencies"] = self.circular_dependencies
        return d

    @classmethod
    def from_dict(cls, d: dict) -> ValidationResult:
        return cls(
            valid=bool(d["valid"]),
            circular_dependencies=d.get("circular_dependencies"),
        )
