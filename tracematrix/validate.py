from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

from jsonschema import Draft202012Validator

SCHEMA_PATH = Path(__file__).resolve().parent / "schema" / "trace-config.schema.json"


class ConfigError(ValueError):
    pass


@lru_cache(maxsize=1)
def _validator() -> Draft202012Validator:
    schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
    return Draft202012Validator(schema)


def _error_path(err) -> str:
    return "/".join(str(part) for part in err.absolute_path) or "<root>"


def validate_config(instance: Dict[str, Any], source: str = "<config>") -> None:
    errors = sorted(
        _validator().iter_errors(instance),
        key=lambda err: [str(part) for part in err.absolute_path],
    )
    if errors:
        details = "\n- ".join(f"{_error_path(err)}: {err.message}" for err in errors)
        raise ConfigError(f"{source}: configuration validation failed:\n- {details}")
