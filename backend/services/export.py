"""JSON export of designs and history items (pretty-printed, camelCase keys)."""

import json
import re

from schemas import HistoryItem, HouseDesign

JSON_INDENT = 2


def to_json(record) -> str:
    """Serialize a HouseDesign or HistoryItem as an indented JSON document."""
    return json.dumps(record.model_dump(mode="json", by_alias=True), indent=JSON_INDENT,
                      ensure_ascii=False)


def design_filename(design: HouseDesign) -> str:
    """``"Urban Balanced Single-Story Home"`` -> ``urban_balanced_single-story_home.json``."""
    stem = re.sub(r"\s+", "_", design.title).lower()
    return f"{stem}.json"


def history_filename(item: HistoryItem) -> str:
    return f"design_history_{item.created_at.date().isoformat()}.json"
