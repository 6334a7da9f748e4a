"""
Compact flattening of Data Platform responses.

Turns nested JSON into (path, value, type) rows so the frontend can show
which fields a response carries. Lists are sampled by their first element
only, which keeps large time series readable.
"""

import json
from collections import defaultdict
from typing import Any, Dict, List, TypedDict

MAX_VALUE_LENGTH = 100


class FlattenedItem(TypedDict):
    path: str
    value: str
    type: str


def _truncate(value: str) -> str:
    if len(value) > MAX_VALUE_LENGTH:
        return value[:MAX_VALUE_LENGTH] + "..."
    return value


def _item(path: str, value: str, type_: str) -> FlattenedItem:
    return {"path": path or "root", "value": value, "type": type_}


def _scalar(value: Any):
    if isinstance(value, bool):
        return ("true" if value else "false"), "boolean"
    if isinstance(value, float) and value.is_integer():
        return str(int(value)), "number"
    if isinstance(value, (int, float)):
        return str(value), "number"
    if isinstance(value, str):
        return value, "string"
    return str(value), type(value).__name__


def smart_flatten(data: Any, parent_key: str = "", sep: str = ".") -> List[FlattenedItem]:
    """
    Flatten nested dicts/lists into path/value/type rows.

    Lists keep only their first element (path suffix ``[0]``) plus a
    ``._arrayLength`` meta row; scalar values are truncated to 100 chars.
    """
    if data is None:
        return [_item(parent_key, "null", "null")]

    if isinstance(data, list):
        if not data:
            return [_item(parent_key, "[]", "emptyArray")]
        items = smart_flatten(data[0], f"{parent_key}[0]", sep)
        items.append(_item(f"{parent_key}._arrayLength", str(len(data)), "meta"))
        return items

    if isinstance(data, dict):
        items: List[FlattenedItem] = []
        for key, value in data.items():
            new_key = f"{parent_key}{sep}{key}" if parent_key else str(key)
            items.extend(smart_flatten(value, new_key, sep))
        return items

    value, type_ = _scalar(data)
    return [_item(parent_key, _truncate(value), type_)]


def _json_size(data: Any) -> int:
    return len(json.dumps(data, separators=(",", ":"), ensure_ascii=False, default=str))


def flatten_with_stats(data: Any) -> Dict[str, Any]:
    """Flatten and report how much smaller the flattened view is."""
    original_size = _json_size(data)
    items = smart_flatten(data)
    flattened_size = _json_size(items)
    ratio = (1 - flattened_size / original_size) * 100 if original_size else 0.0
    return {
        "items": items,
        "stats": {
            "originalSize": original_size,
            "flattenedCount": len(items),
            "compressionRatio": f"{ratio:.1f}%",
        },
    }


def group_by_root(items: List[FlattenedItem]) -> Dict[str, List[FlattenedItem]]:
    """Group rows by the first path segment (before any '.' or '[')."""
    groups: Dict[str, List[FlattenedItem]] = defaultdict(list)
    for item in items:
        root_key = item["path"].split(".")[0].split("[")[0]
        groups[root_key].append(item)
    return dict(groups)
