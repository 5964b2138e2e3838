"""
Pattern tables for the detectors

The tables are data: `patterns.json` beside this module holds one entry per
detector with its candidate selector, named pattern lists and fixed finding
messages. A user file can be deep-merged over the defaults to extend or
replace individual entries without touching detector code.
"""

from __future__ import annotations

import copy
import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Pattern, Union

from ..core.errors import PatternTableError


_PATTERNS_PATH = Path(__file__).with_name("patterns.json")

with open(_PATTERNS_PATH, "r", encoding="utf-8") as f:
    DEFAULT_TABLES: Dict[str, Any] = json.load(f)


@dataclass
class PatternTable:
    """Compiled patterns and messages for one detector."""

    detector: str
    selector: Optional[str] = None
    patterns: Dict[str, List[Pattern]] = field(default_factory=dict)
    messages: Dict[str, str] = field(default_factory=dict)
    options: Dict[str, Any] = field(default_factory=dict)

    def get(self, name: str) -> List[Pattern]:
        return self.patterns.get(name, [])

    def message(self, name: str = "default") -> str:
        if name in self.messages:
            return self.messages[name]
        if "default" in self.messages:
            return self.messages["default"]
        raise PatternTableError(f"Detector '{self.detector}' has no message '{name}'")

    def option(self, name: str, default: Any = None) -> Any:
        return self.options.get(name, default)


def compile_entry(entry: Union[str, Mapping[str, str]], detector: str) -> Pattern:
    """Compile one pattern entry. Strings are regexes; {"literal": ...} is matched verbatim."""
    if isinstance(entry, str):
        source = entry
    elif isinstance(entry, Mapping) and "regex" in entry:
        source = entry["regex"]
    elif isinstance(entry, Mapping) and "literal" in entry:
        source = re.escape(entry["literal"])
    else:
        raise PatternTableError(f"Invalid pattern entry for '{detector}': {entry!r}")

    try:
        return re.compile(source, re.IGNORECASE)
    except re.error as e:
        raise PatternTableError(f"Invalid regex for '{detector}': {source!r} ({e})") from e


def compile_table(detector: str, raw: Mapping[str, Any]) -> PatternTable:
    if not isinstance(raw, Mapping):
        raise PatternTableError(f"Pattern table for '{detector}' must be an object")

    patterns = raw.get("patterns", {}) or {}
    messages = raw.get("messages", {}) or {}
    if not isinstance(patterns, Mapping) or not isinstance(messages, Mapping):
        raise PatternTableError(f"Pattern table for '{detector}' has malformed patterns/messages")

    compiled: Dict[str, List[Pattern]] = {}
    for name, entries in patterns.items():
        if not isinstance(entries, list):
            raise PatternTableError(f"Pattern list '{name}' for '{detector}' must be a list")
        compiled[name] = [compile_entry(entry, detector) for entry in entries]

    options = {
        key: value for key, value in raw.items()
        if key not in ("selector", "patterns", "messages")
    }
    return PatternTable(
        detector=detector,
        selector=raw.get("selector"),
        patterns=compiled,
        messages=dict(messages),
        options=options,
    )


def deep_merge(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into a copy of base. Lists are replaced, not extended."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def read_pattern_file(path: Union[str, Path]) -> Dict[str, Any]:
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise PatternTableError(f"Could not read pattern file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise PatternTableError(f"Pattern file {path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise PatternTableError(f"Pattern file {path} must contain a JSON object")
    return data


def load_pattern_tables(path: Optional[Union[str, Path]] = None,
                        overrides: Optional[Mapping[str, Any]] = None) -> Dict[str, PatternTable]:
    """Compile the default tables, optionally merged with a user file and/or a mapping."""
    raw = copy.deepcopy(DEFAULT_TABLES)
    if path is not None:
        raw = deep_merge(raw, read_pattern_file(path))
    if overrides:
        raw = deep_merge(raw, overrides)

    return {detector: compile_table(detector, table) for detector, table in raw.items()}
