# items.py - item / pair parsing and working-set helpers
from __future__ import annotations

import random
import re
from typing import Any, Collection, Iterable, List, Optional, Sequence, Tuple

from config import CFG
from models import GroupingRequest, Pair
from solver.errors import NoItems, PairError

_ITEM_SPLIT_RE = re.compile(r"\r?\n|,")
# "A, B" / "A <-> B" / "A ↔ B" / "A + B" / "A & B", strongest separator first
_PAIR_SEPARATORS = ("<->", "↔", ",", "+", "&")
_PAIR_SPLIT_RE = re.compile("|".join(re.escape(s) for s in _PAIR_SEPARATORS))
_TRUTHY = {"1", "true", "yes", "on", "y"}


def _to_int(x: Any) -> Optional[int]:
    """Whole numbers only: "3" and 3.0 pass, "2.7" and True do not."""
    if isinstance(x, bool):
        return None
    try:
        f = float(x)
    except Exception:
        return None
    if not f.is_integer():
        return None
    return int(f)


def _to_bool(x: Any) -> bool:
    if isinstance(x, bool):
        return x
    return str(x).strip().lower() in _TRUTHY


def _first(container: Any, *keys: str) -> Any:
    """First value present for any of ``keys``."""
    if not isinstance(container, dict):
        return None
    for key in keys:
        if key in container:
            return container[key]
    return None


# ---------- items ----------

def parse_items(raw: Any) -> List[str]:
    """Split text on newlines/commas, trim, drop empties and repeats."""
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        parts = [str(p) for p in raw]
    else:
        parts = _ITEM_SPLIT_RE.split(str(raw))
    out: List[str] = []
    for p in parts:
        name = p.strip()
        if name and name not in out:
            out.append(name)
    return out


def add_items(items: Sequence[str], raw: Any) -> List[str]:
    """Append parsed names to ``items``, skipping ones already present."""
    new_items = parse_items(raw)
    if not new_items:
        raise NoItems("Type items first.")
    return parse_items(list(items) + new_items)


def remove_item(items: Sequence[str], pairs: Sequence[Pair], name: str) -> Tuple[List[str], List[Pair]]:
    """Drop ``name`` and every pair that mentions it."""
    kept_items = [it for it in items if it != name]
    kept_pairs = [p for p in pairs if p[0] != name and p[1] != name]
    return kept_items, kept_pairs


def shuffle_items(items: Sequence[str], rng: Optional[random.Random] = None) -> List[str]:
    out = list(items)
    (rng or random.Random()).shuffle(out)
    return out


# ---------- pairs ----------

def add_pair(pairs: Sequence[Pair], a: Optional[str], b: Optional[str]) -> List[Pair]:
    """Return ``pairs`` plus ``(a, b)``; raises PairError on a bad pair."""
    a = (a or "").strip()
    b = (b or "").strip()
    if not a or not b:
        raise PairError("Choose both items.")
    if a == b:
        raise PairError("Pair must be two different items.")
    if any((p[0] == a and p[1] == b) or (p[0] == b and p[1] == a) for p in pairs):
        raise PairError("Pair exists.")
    return list(pairs) + [(a, b)]


def _split_pair(text: str, known: Optional[Collection[str]] = None) -> List[str]:
    """
    Split one pair entry into its two names.

    With ``known`` names, any separator whose two sides are both known wins,
    so "C++, Go" and "R&D + Ops" keep their names whole. Otherwise the line is
    cut once at the strongest separator present.
    """
    text = text.strip()
    if known:
        for m in _PAIR_SPLIT_RE.finditer(text):
            a, b = text[:m.start()].strip(), text[m.end():].strip()
            if a in known and b in known:
                return [a, b]
    for sep in _PAIR_SEPARATORS:
        if sep in text:
            a, b = text.split(sep, 1)
            return [a.strip(), b.strip()]
    return [text]


def parse_pairs(raw: Any, known: Optional[Collection[str]] = None) -> List[Pair]:
    """
    Accept ``[[a, b], ...]`` or text with one pair per line.
    Repeated pairs (either order) are dropped; malformed ones raise PairError.
    ``known`` item names let separators appear inside names.
    """
    if raw is None:
        return []

    entries: List[Tuple[int, List[str]]] = []
    if isinstance(raw, (list, tuple)):
        for lineno, entry in enumerate(raw, start=1):
            if isinstance(entry, (list, tuple)):
                entries.append((lineno, [str(x) for x in entry]))
            else:
                entries.append((lineno, _split_pair(str(entry), known)))
    else:
        for lineno, line in enumerate(str(raw).splitlines(), start=1):
            if line.strip():
                entries.append((lineno, _split_pair(line, known)))

    pairs: List[Pair] = []
    for lineno, tokens in entries:
        tokens = [t.strip() for t in tokens]
        if len(tokens) != 2 or not all(tokens):
            raise PairError(f"Could not read pair {lineno}: expected two items.")
        try:
            pairs = add_pair(pairs, tokens[0], tokens[1])
        except PairError as exc:
            if str(exc) == "Pair exists.":
                continue
            raise PairError(f"Pair {lineno}: {exc}") from None
    return pairs


# ---------- requests ----------

def parse_request(form_like: Any) -> Tuple[Optional[GroupingRequest], Optional[str]]:
    """
    Return (request, error_message_or_None).
    Accepts JSON bodies or merged form mappings (see app._merge_like_mapping).
    """
    if not isinstance(form_like, dict) or not form_like:
        return None, "nothing parsed from request"

    items = parse_items(_first(form_like, "items", "items[]", "itemsTxt"))
    if not items:
        return None, "Add items first."

    try:
        pairs = parse_pairs(_first(form_like, "pairs", "pairs[]"), known=set(items))
    except PairError as exc:
        return None, str(exc)

    k = _to_int(_first(form_like, "numGroups", "num_groups", "groups"))
    if k is None or k < 1:
        return None, "Set number of groups to at least 1."

    allow_near = _to_bool(_first(form_like, "allowNear", "allow_near") or False)

    raw_desired = _first(form_like, "solutions", "desired")
    desired = _to_int(raw_desired) if raw_desired not in (None, "") else int(CFG.DESIRED_SOLUTIONS)
    if desired is None or desired < 1:
        return None, "Number of groupings must be at least 1."

    return GroupingRequest(items, pairs, k, allow_near, desired), None


__all__ = [
    "add_items",
    "add_pair",
    "parse_items",
    "parse_pairs",
    "parse_request",
    "remove_item",
    "shuffle_items",
]
