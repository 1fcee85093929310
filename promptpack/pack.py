from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from .constants import DEFAULT_SOURCE, PACK_DOCUMENT_VERSION
from .container import decode, encode
from .encryption import RandomSource
from .errors import InvalidPackDocument


@dataclass
class PromptRecord:
    text: str
    header: Optional[str] = None
    source: str = DEFAULT_SOURCE
    created_at: Optional[int] = None  # ms since epoch


@dataclass
class PackDocument:
    exported_at: int
    prompts: List[PromptRecord] = field(default_factory=list)
    version: int = PACK_DOCUMENT_VERSION


def _now_ms() -> int:
    return int(time.time() * 1000)


def _record_to_json(r: PromptRecord) -> Dict[str, Any]:
    return {
        "text": r.text,
        "header": r.header,
        "source": r.source,
        "createdAt": r.created_at,
    }


def _record_from_json(obj: Any) -> Optional[PromptRecord]:
    if not isinstance(obj, dict):
        return None
    text = obj.get("text")
    if not isinstance(text, str) or not text:
        return None
    header = obj.get("header")
    source = obj.get("source")
    created = obj.get("createdAt")
    return PromptRecord(
        text=text,
        header=header if isinstance(header, str) else None,
        source=source if isinstance(source, str) else DEFAULT_SOURCE,
        created_at=created if isinstance(created, int) and not isinstance(created, bool) else None,
    )


def dumps_pack(doc: PackDocument) -> str:
    return json.dumps(
        {
            "version": doc.version,
            "exportedAt": doc.exported_at,
            "prompts": [_record_to_json(r) for r in doc.prompts],
        },
        ensure_ascii=False,
        separators=(",", ":"),
    )


def loads_pack(text: str) -> PackDocument:
    """Parse the JSON document carried inside a container.

    Prompts without text are dropped; a missing ``source`` becomes ``"manual"``.
    """
    try:
        obj = json.loads(text)
    except ValueError as e:
        raise InvalidPackDocument(f"Invalid pack JSON: {e}") from e
    if not isinstance(obj, dict):
        raise InvalidPackDocument("Invalid pack format: expected a JSON object")
    prompts = obj.get("prompts")
    if not isinstance(prompts, list):
        raise InvalidPackDocument("Invalid pack format: missing prompts array")
    records = [r for r in (_record_from_json(p) for p in prompts) if r is not None]
    version = obj.get("version", PACK_DOCUMENT_VERSION)
    exported_at = obj.get("exportedAt", 0)
    return PackDocument(
        exported_at=exported_at if isinstance(exported_at, int) else 0,
        prompts=records,
        version=version if isinstance(version, int) else PACK_DOCUMENT_VERSION,
    )


def export_pack(
    records: Iterable[PromptRecord],
    password: Optional[str] = None,
    *,
    exported_at: Optional[int] = None,
    rng: Optional[RandomSource] = None,
) -> bytes:
    doc = PackDocument(
        exported_at=exported_at if exported_at is not None else _now_ms(),
        prompts=list(records),
    )
    return encode(dumps_pack(doc), password, rng=rng)


def import_pack(data: bytes, password: Optional[str] = None) -> PackDocument:
    return loads_pack(decode(data, password))
