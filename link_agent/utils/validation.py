"""
Shared helpers for the MAAS link agent: CLI result emission, input checks
and config dict handling.
"""
import json
import re
from pathlib import Path
from typing import Any, Dict, NoReturn

import typer

from link_agent.backend.base import NotFoundError

_SYSTEM_ID_RE = re.compile(r"^[A-Za-z0-9]+$")
_TRUE_WORDS = {"1", "true", "yes", "on"}


def fail(msg: str) -> NoReturn:
    """Print `{"error": msg}` as JSON and exit with code 1."""
    typer.echo(json.dumps({"error": msg}))
    raise typer.Exit(code=1)


def succeed(data: Dict[str, Any]) -> NoReturn:
    """Print the result as JSON and exit with code 0."""
    typer.echo(json.dumps(data))
    raise typer.Exit(code=0)


def validate_system_id(system_id: str) -> None:
    """Validate a machine system ID (alnum only). Raise ValueError on error."""
    if not _SYSTEM_ID_RE.match(system_id or ""):
        raise ValueError(f"Invalid machine system ID '{system_id}'. Only A-Z, a-z and 0-9 allowed")


def resolve_system_id(gateway: Any, ref: str) -> str:
    """Machine system ID from a system ID, hostname or FQDN.

    A well-formed system ID the gateway does not know is returned as is, so a
    teardown of a machine that is already gone can still complete.
    """
    ref = str(ref or "").strip()
    if not ref:
        raise ValueError("machine is required")
    finder = getattr(gateway, "find_node", None)
    if finder is not None:
        try:
            return finder(ref).system_id
        except NotFoundError:
            if not _SYSTEM_ID_RE.match(ref):
                raise
    validate_system_id(ref)
    return ref


def read_json(path: Path) -> Dict[str, Any]:
    """Parse a JSON spec file for a CLI command; unreadable or malformed files fail the command."""
    try:
        text = path.read_text(encoding="utf-8")
        data = json.loads(text)
    except (OSError, ValueError) as e:
        fail(f"Cannot load spec file '{path}': {e}")
    if not isinstance(data, dict):
        fail(f"Spec file '{path}' must contain a JSON object")
    return data


def deep_update(dst: Dict[str, Any], src: Dict[str, Any]) -> Dict[str, Any]:
    """Merge `src` into `dst` in place, recursing into nested sections."""
    for key, value in (src or {}).items():
        current = dst.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            deep_update(current, value)
            continue
        dst[key] = value
    return dst


def is_truthy(value: Any) -> bool:
    """Interpret common truthy representations."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_WORDS
    return False
