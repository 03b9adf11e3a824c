"""
Configuration snapshot model.

A snapshot is what `backup` captures and `restore` replays: the values of a
set of Focus commands, plus the order in which to send them back.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List


class MalformedSnapshotError(ValueError):
    """Snapshot data does not have the expected structure"""
    pass


@dataclass
class Snapshot:
    """
    Captured keyboard configuration.

    Attributes:
        restore: Command names to replay, in replay order. A command present
            in `commands` but missing here is never replayed.
        commands: Captured value for each command name
    """
    restore: List[str] = field(default_factory=list)
    commands: Dict[str, str] = field(default_factory=dict)

    def add(self, command: str, value: str) -> None:
        """Record a captured value and append the command to the replay order."""
        self.commands[command] = value
        self.restore.append(command)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "restore": list(self.restore),
            "commands": dict(self.commands),
        }

    def to_json(self, indent=None) -> str:
        """Serialize to a JSON document."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Any) -> "Snapshot":
        """
        Build a snapshot from parsed data, validating its structure.

        Raises:
            MalformedSnapshotError: If a field is missing or has the wrong type
        """
        if not isinstance(data, dict):
            raise MalformedSnapshotError(
                f"Snapshot must be an object, got {type(data).__name__}"
            )

        for key in ("restore", "commands"):
            if key not in data:
                raise MalformedSnapshotError(f"Snapshot is missing the '{key}' field")

        restore = data["restore"]
        if not isinstance(restore, list) or not all(isinstance(k, str) for k in restore):
            raise MalformedSnapshotError("'restore' must be a list of strings")

        commands = data["commands"]
        if not isinstance(commands, dict):
            raise MalformedSnapshotError("'commands' must be an object")
        for key, value in commands.items():
            if not isinstance(value, str):
                raise MalformedSnapshotError(
                    f"Value of command '{key}' must be a string, got {type(value).__name__}"
                )

        return cls(restore=list(restore), commands=dict(commands))

    @classmethod
    def from_json(cls, text: str) -> "Snapshot":
        """
        Parse a snapshot from a JSON document.

        Raises:
            MalformedSnapshotError: If the text is not valid JSON or not a snapshot
        """
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise MalformedSnapshotError(f"Unable to parse the backup: {e}")
        return cls.from_dict(data)
