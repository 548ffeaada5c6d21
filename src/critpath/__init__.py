"""Critical-path scheduling engine."""

from critpath.cycles import validate_dependencies
from critpath.models import (
    CriticalPathResult,
    Dependency,
    DependencyType,
    Task,
    ValidationResult,
)
from critpath.scheduler import auto_schedule_tasks, calculate_critical_path

__all__ = [
    "CriticalPathResult",
    "Dependency",
    "DependencyType",
    "Task",
    "ValidationResult",
    "auto_schedule_tasks",
    "calculate_critical_path",
    "validate_dependencies",
]
