from __future__ import annotations

import datetime as dt
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from bondgen.models.bond import NumberingConfig, SupplementaryInfo

"""Job file loader.

Responsibilities:
- Load the YAML job file (default ``config/generate.yml``)
- Validate it against ``bondgen/contracts/config_schema.json``
- Apply defaults (numbering from 1, strict schedules)
"""

__all__ = [
    "ConfigError",
    "GenerateConfig",
    "load_config",
    "SCHEMA_PATH",
]

SCHEMA_PATH = Path(__file__).resolve().parent.parent / "contracts" / "config_schema.json"


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class GenerateConfig:
    template: Path
    maturity_schedule: Path
    cusip_schedule: Path
    output: Path
    dated_date: str | None
    info: SupplementaryInfo
    numbering: NumberingConfig
    allow_partial_schedules: bool = False


def _iso_dates(value: Any) -> Any:
    """YAML reads bare 2025-06-01 as a date; the schema wants strings."""
    if isinstance(value, dict):
        return {k: _iso_dates(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_iso_dates(v) for v in value]
    if isinstance(value, dt.date):
        return value.isoformat()[:10]
    return value


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: If the schema file is missing or unreadable, or the config
            data fails validation (missing keys, wrong types, unknown keys).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path) -> GenerateConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config validation failed: top level must be a mapping")

    data = _iso_dates(data)
    _validate_config_schema(data)

    interest = data.get("interest_dates", {})
    info = SupplementaryInfo(
        issuer_name=data.get("issuer_name"),
        bond_title=data.get("bond_title"),
        project_name=data.get("project_name"),
        first_interest_date=interest.get("first"),
        second_interest_date=interest.get("second"),
    )
    numbering_raw = data.get("numbering", {})
    numbering = NumberingConfig(
        starting_number=numbering_raw.get("starting_number", 1),
        custom_prefix=numbering_raw.get("custom_prefix") or None,
    )
    return GenerateConfig(
        template=Path(data["template"]),
        maturity_schedule=Path(data["maturity_schedule"]),
        cusip_schedule=Path(data["cusip_schedule"]),
        output=Path(data["output"]),
        dated_date=data.get("dated_date"),
        info=info,
        numbering=numbering,
        allow_partial_schedules=bool(data.get("allow_partial_schedules", False)),
    )
