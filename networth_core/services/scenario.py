from __future__ import annotations

import copy
from typing import Any, Dict, List


def _merge_list(base: List[Any], changes: List[Any]) -> List[Any]:
    # Lists of records carrying ids are patched per record; anything else is replaced.
    keyed = all(isinstance(item, dict) and "id" in item for item in base + changes)
    if not keyed or not changes:
        return copy.deepcopy(changes)

    merged = [copy.deepcopy(item) for item in base]
    positions = {item["id"]: i for i, item in enumerate(merged)}
    for change in changes:
        if change["id"] in positions:
            i = positions[change["id"]]
            merged[i] = apply_overrides(merged[i], change)
        else:
            merged.append(copy.deepcopy(change))
    return merged


def apply_overrides(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep-merge ``overrides`` into a copy of raw projection inputs.

    Nested sections merge key by key. Lists of records with an ``id`` are
    matched by id, so a scenario can change one income stream or investment
    without restating the rest. A ``None`` value removes the key.
    """
    result = copy.deepcopy(base)
    for key, value in overrides.items():
        if value is None:
            result.pop(key, None)
        elif isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = apply_overrides(result[key], value)
        elif isinstance(value, list) and isinstance(result.get(key), list):
            result[key] = _merge_list(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result
