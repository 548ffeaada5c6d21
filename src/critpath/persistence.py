"""JSON file persistence for tasks and dependencies."""

from __future__ import annotations

import json
from pathlib import Path

from critpath.models import Dependency, Task


class Store:
    """Reads and writes the project database (JSON file)."""

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)

    def load(self) -> tuple[list[Task], list[Dependency]]:
        """Return (tasks, dependencies); both empty if the file does not exist."""
        if not self.db_path.exists():
            return [], []

        raw = json.loads(self.db_path.read_text())

        tasks: list[Task] = []
        for i, tdata in enumerate(raw.get("tasks", [])):
            try:
                tasks.append(Task.from_dict(tdata))
            except (KeyError, TypeError, ValueError) as e:
                raise ValueError(f"Invalid task at index {i}: {e!r}") from e

        dependencies: list[Dependency] = []
        for i, ddata in enumerate(raw.get("dependencies", [])):
            try:
                dependencies.append(Dependency.from_dict(ddata))
            except (KeyError, TypeError, ValueError) as e:
                raise ValueError(f"Invalid dependency at index {i}: {e!r}") from e

        return tasks, dependencies

    def save(self, tasks: list[Task], dependencies: list[Dependency]) -> None:
        """Persist tasks + dependencies to disk."""
        raw = {
            "tasks": [t.to_dict() for t in tasks],
            "dependencies": [d.to_dict() for d in dependencies],
        }
        self.db_path.write_text(json.dumps(raw, indent=4))

    def generate_id(self, tasks: list[Task]) -> str:
        """Generate the next T-N id."""
        existing = [
            int(t.id.split("-")[1])
            for t in tasks
            if t.id.startswith("T-") and t.id.split("-")[1].isdigit()
        ]
        next_num = max(existing, default=0) + 1
        return f"T-{next_num}"
