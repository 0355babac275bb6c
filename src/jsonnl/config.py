"""Settings for the scanner cap and the activation gate."""

from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path


@dataclass(frozen=True)
class Settings:
    max_scan_chars: int = 2_000_000
    max_literals: int = 100_000
    language_ids: tuple[str, ...] = ("json", "jsonc")
    enabled: bool = True

    def __post_init__(self) -> None:
        for name in ("max_scan_chars", "max_literals"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise ValueError(f"{name} must be an integer, got {value!r}")
            if value <= 0:
                raise ValueError(f"{name} must be positive")

    def accepts(self, language_id: str) -> bool:
        """Return True if documents of *language_id* get an engine."""
        return self.enabled and language_id in self.language_ids

    @classmethod
    def from_dict(cls, data: dict) -> Settings:
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"unknown settings: {', '.join(unknown)}")
        values = dict(data)
        if "language_ids" in values:
            ids = values["language_ids"]
            if isinstance(ids, str):
                ids = [ids]
            if not isinstance(ids, (list, tuple)) or not all(isinstance(i, str) for i in ids):
                raise ValueError("language_ids must be a list of strings")
            values["language_ids"] = tuple(ids)
        if not isinstance(values.get("enabled", True), bool):
            raise ValueError("enabled must be true or false")
        return cls(**values)

    @classmethod
    def load(cls, path: str | Path) -> Settings:
        """Read settings from a JSON object file."""
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"{path}: settings must be a JSON object")
        return cls.from_dict(data)
