"""Helpers for writing grouping exports to disk."""

from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from config import CFG
from models import GroupingOutcome
from render import groupings_text


def _resolve_output_path(base_dir: str, configured_name: str, fallback: str) -> str:
    """Return the absolute path where an output artifact should be written."""

    name = (configured_name or "").strip() or fallback
    if os.path.isabs(name):
        return name
    return os.path.join(base_dir, name)


def export_record(outcome: GroupingOutcome, generated_at: Optional[datetime] = None) -> Dict[str, Any]:
    """The ``{items, pairs, numGroups, allowNear, generatedAt, groupings}`` record."""

    stamp = generated_at or datetime.now(timezone.utc)
    req = outcome.request
    return {
        "items": list(req.items),
        "pairs": [list(p) for p in req.pairs],
        "numGroups": req.num_groups,
        "allowNear": bool(req.allow_near),
        "generatedAt": stamp.isoformat().replace("+00:00", "Z"),
        "groupings": [[list(g) for g in grouping] for grouping in outcome.groupings],
    }


def write_export_json(record: Dict[str, Any], base_dir: str) -> str:
    """Write the export record to the configured JSON file."""

    path = _resolve_output_path(base_dir, CFG.EXPORT_OUT, "groupings.json")
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        json.dump(record, f, indent=2, ensure_ascii=False)
        f.write("\n")
    return path


def write_groupings_text(record: Dict[str, Any], base_dir: str) -> str:
    """Write the plain-text rendering of the record's groupings."""

    path = _resolve_output_path(base_dir, CFG.TEXT_OUT, "groupings.txt")
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)

    groupings = record.get("groupings") or []
    with open(path, "w", encoding="utf-8") as f:
        if not groupings:
            f.write("No grouping\n")
        else:
            f.write(groupings_text(groupings) + "\n")
    return path


__all__ = ["export_record", "write_export_json", "write_groupings_text"]
