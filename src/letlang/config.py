"""TOML config loading for letlang.toml."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

CONFIG_NAME = "letlang.toml"
OUTPUT_FORMATS = ("tree", "repr")


@dataclass
class DiagnosticsConfig:
    color: bool = True
    max_errors: int = 0  # 0 means unlimited


@dataclass
class OutputConfig:
    format: str = "tree"


@dataclass
class LetConfig:
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)
    output: OutputConfig = field(default_factory=OutputConfig)


def find_config(start_path: Path | None = None) -> Path:
    """Walk up directories to find letlang.toml. Raises FileNotFoundError."""
    path = (start_path or Path.cwd()).resolve()
    if path.is_file():
        path = path.parent
    while True:
        candidate = path / CONFIG_NAME
        if candidate.exists():
            return candidate
        parent = path.parent
        if parent == path:
            raise FileNotFoundError(f"No {CONFIG_NAME} found in any parent directory")
        path = parent


def load_config(path: Path) -> LetConfig:
    """Parse a letlang.toml file into a LetConfig.

    Raises tomllib.TOMLDecodeError on malformed TOML and ValueError on
    values of the wrong type or an unknown output format.
    """
    with open(path, "rb") as f:
        data = tomllib.load(f)

    config = LetConfig()

    if "diagnostics" in data:
        diag = data["diagnostics"]
        config.diagnostics = DiagnosticsConfig(
            color=diag.get("color", True),
            max_errors=diag.get("max_errors", 0),
        )
        if not isinstance(config.diagnostics.color, bool):
            raise ValueError("diagnostics.color must be a boolean")
        if (not isinstance(config.diagnostics.max_errors, int)
                or config.diagnostics.max_errors < 0):
            raise ValueError("diagnostics.max_errors must be a non-negative integer")

    if "output" in data:
        out = data["output"]
        config.output = OutputConfig(
            format=out.get("format", "tree"),
        )
        if config.output.format not in OUTPUT_FORMATS:
            raise ValueError(
                f"unknown output.format {config.output.format!r}; "
                f"expected one of {', '.join(OUTPUT_FORMATS)}"
            )

    return config
