"""Session configuration: which profile, autosave timing, history depth."""
from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

from report_model.io_utils import load_json, save_json
from report_model.profiles import ReportProfile, get_profile


@dataclass(frozen=True, slots=True)
class ReportConfig:
    profile: str = "unified"
    autosave_delay_seconds: float = 2.0
    autosave_enabled: bool = True
    history_limit: int = 100
    default_author: str = "Unknown"

    def __post_init__(self) -> None:
        get_profile(self.profile)
        if self.autosave_delay_seconds < 0:
            raise ValueError(f"autosave_delay_seconds must be >= 0, got {self.autosave_delay_seconds}")
        if self.history_limit < 1:
            raise ValueError(f"history_limit must be >= 1, got {self.history_limit}")

    def resolve_profile(self) -> ReportProfile:
        return get_profile(self.profile)


def config_to_dict(config: ReportConfig) -> dict[str, Any]:
    return asdict(config)


def config_from_dict(d: dict[str, Any]) -> ReportConfig:
    """Create a ReportConfig from a dict (e.g., loaded from JSON).

    Unknown keys are ignored; missing keys take their defaults.
    """
    valid = {f.name for f in fields(ReportConfig)}
    converted: dict[str, Any] = {}
    for key, val in d.items():
        if key not in valid or val is None:
            continue
        if key == "autosave_delay_seconds":
            converted[key] = float(val)
        elif key == "history_limit":
            converted[key] = int(val)
        elif key == "autosave_enabled":
            converted[key] = bool(val)
        else:
            converted[key] = str(val)
    return ReportConfig(**converted)


def load_config(path: Path) -> ReportConfig:
    raw = load_json(path)
    if not isinstance(raw, dict):
        raise ValueError(f"{path}: expected a JSON object, got {type(raw).__name__}")
    return config_from_dict(raw)


def save_config(config: ReportConfig, path: Path) -> None:
    save_json(config_to_dict(config), path)
