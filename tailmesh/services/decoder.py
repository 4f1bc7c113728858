from __future__ import annotations

from pydantic import ValidationError

from tailmesh.errors import InvalidOutputError
from tailmesh.schemas.status import StatusSnapshot


def _summarize(exc: ValidationError) -> str:
    parts: list[str] = []
    for item in exc.errors(include_url=False):
        location = ".".join(str(part) for part in item.get("loc", ())) or "<root>"
        parts.append(f"{location}: {item.get('msg', 'invalid')}")
    return "; ".join(parts)


def decode_status(text: str) -> StatusSnapshot:
    if not text.strip():
        raise InvalidOutputError("empty status document")
    try:
        return StatusSnapshot.model_validate_json(text)
    except ValidationError as exc:
        raise InvalidOutputError(_summarize(exc)) from exc
