"""Sequencer configuration and JSON settings access."""

from __future__ import annotations

import json
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any


class SettingsError(ValueError):
    """Raised for an unreadable settings file or an invalid setting."""


@dataclass(frozen=True)
class SequencerConfig:
    """Search window bounds for the greedy sequencer.

    The horizontal window is scanned linearly. The vertical search is
    quadratic, pairing each of the first `vertical_outer_window` positions
    with each of the first `vertical_inner_window` positions.
    """

    horizontal_window: int = 40000
    vertical_outer_window: int = 1000
    vertical_inner_window: int = 10
    progress_modulus: int = 2000
    progress_remainder: int = 1000

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name == "progress_remainder":
                if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                    raise SettingsError(f"{f.name} must be a non-negative integer, got {value!r}")
            elif not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise SettingsError(f"{f.name} must be a positive integer, got {value!r}")
        if self.progress_remainder >= self.progress_modulus:
            raise SettingsError(
                f"progress_remainder must be below progress_modulus, "
                f"got {self.progress_remainder} and {self.progress_modulus}"
            )

    def with_overrides(self, **overrides: int | None) -> SequencerConfig:
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self


class JsonSettings:
    """Lightweight JSON settings reader with dotted-key access."""

    def __init__(self, settings_path: str | Path) -> None:
        self._path = Path(settings_path)
        try:
            with self._path.open("r", encoding="utf-8") as f:
                self._data = json.load(f)
        except FileNotFoundError:
            raise SettingsError(f"settings file not found: {self._path}") from None
        except OSError as e:
            raise SettingsError(f"cannot read settings file {self._path}: {e}") from None
        except json.JSONDecodeError as e:
            raise SettingsError(f"invalid JSON in {self._path}: {e}") from None

    def get(self, key: str, default: Any | None = None) -> Any:
        """Return value for dotted `key`, or `default` if not present."""
        node: Any = self._data
        for part in key.split("."):
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return node


def load_sequencer_config(settings: JsonSettings | None = None) -> SequencerConfig:
    """Build a config from the `sequencer.*` keys, falling back to defaults."""
    config = SequencerConfig()
    if settings is None:
        return config
    overrides = {f.name: settings.get(f"sequencer.{f.name}") for f in fields(SequencerConfig)}
    return config.with_overrides(**overrides)
