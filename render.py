import html
import json
import random
from typing import Dict, List, Sequence, Tuple

from models import Grouping


def _color(label: str) -> str:
    rng = random.Random(label)
    r = rng.randint(90, 220)
    g = rng.randint(90, 220)
    b = rng.randint(90, 220)
    return f"rgb({r},{g},{b})"


def grouping_text(grouping: Grouping) -> str:
    """``Group 1 (2): A, B`` lines, one per group."""
    return "\n".join(
        f"Group {gi + 1} ({len(grp)}): {', '.join(grp)}" for gi, grp in enumerate(grouping)
    )


def groupings_text(groupings: Sequence[Grouping]) -> str:
    blocks = []
    for i, grouping in enumerate(groupings):
        title = "Grouping" if len(groupings) == 1 else f"Grouping {i + 1}"
        blocks.append(f"{title}\n{grouping_text(grouping)}")
    return "\n\n".join(blocks)


def grouping_json(grouping: Grouping) -> str:
    return json.dumps({"groups": grouping}, indent=2, ensure_ascii=False)


def pair_members(pairs: Sequence[Tuple[str, str]]) -> Dict[str, int]:
    """How many pairs each item takes part in (marks paired names in the view)."""
    counts: Dict[str, int] = {}
    for a, b in pairs:
        counts[a] = counts.get(a, 0) + 1
        counts[b] = counts.get(b, 0) + 1
    return counts


def render_groupings(groupings: Sequence[Grouping], pairs: Sequence[Tuple[str, str]] = ()) -> str:
    paired = pair_members(pairs)
    cards: List[str] = []
    for i, grouping in enumerate(groupings):
        title = "Grouping" if len(groupings) == 1 else f"Grouping {i + 1}"
        parts = [f"<div class='group-card'><div class='group-title'>{title}</div>"]
        for gi, grp in enumerate(grouping):
            label = f"Group {gi + 1}"
            lis = "".join(
                f"<li{' class=paired' if name in paired else ''}>{html.escape(name)}</li>"
                for name in grp
            )
            parts.append(
                f"<div class='group'><span class='swatch' style='background:{_color(label)}'></span>"
                f"<strong>{label} ({len(grp)})</strong><ul>{lis}</ul></div>"
            )
        parts.append("</div>")
        cards.append("".join(parts))
    return "".join(cards)
