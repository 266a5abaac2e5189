"""Parameter normalization and hashing used to spot repeated analysis requests.

Two requests are considered the same when their normalized parameters match:
strings compare case-insensitively after trimming, numbers compare at two
decimal places, list order is ignored and empty values are dropped.
"""

import hashlib
import json
from typing import Any, Dict, Iterable, List, Optional

DUPLICATE_THRESHOLD = 0.95
SIMILAR_THRESHOLD = 0.9
MAX_PARAMETER_SIZE = 1_000_000


def _normalize_number(value: float) -> Any:
    rounded = round(value, 2)
    if isinstance(rounded, float) and rounded.is_integer():
        return int(rounded)
    return rounded


def _sort_key(item: Any) -> str:
    return item if isinstance(item, str) else json.dumps(item, sort_keys=True)


def _normalize_value(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, str):
        trimmed = value.strip()
        return trimmed.lower() if trimmed else None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return _normalize_number(value)
    if isinstance(value, (list, tuple)):
        items = [_normalize_value(item) for item in value]
        return sorted((item for item in items if item is not None), key=_sort_key)
    if isinstance(value, dict):
        return normalize_parameters(value)
    return value


def normalize_parameters(parameters: Any) -> Dict[str, Any]:
    if not isinstance(parameters, dict):
        return {}

    normalized: Dict[str, Any] = {}
    for key, value in parameters.items():
        if isinstance(value, (list, tuple, dict)):
            item = _normalize_value(value)
            if item:
                normalized[key] = item
            continue
        item = _normalize_value(value)
        if item is not None:
            normalized[key] = item
    return normalized


def _canonical(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def generate_parameter_hash(parameters: Dict[str, Any], tool_slug: str, user_id: Optional[str] = None) -> str:
    normalized = normalize_parameters(parameters)
    hash_input = f"{tool_slug}:{user_id or 'anonymous'}:{_canonical(normalized)}"
    return hashlib.sha256(hash_input.encode("utf-8")).hexdigest()


def calculate_similarity(params1: Dict[str, Any], params2: Dict[str, Any]) -> float:
    """Share of keys, across both sets, whose normalized values agree."""
    normalized1 = normalize_parameters(params1)
    normalized2 = normalize_parameters(params2)
    if not normalized1 and not normalized2:
        return 1.0
    if not normalized1 or not normalized2:
        return 0.0

    all_keys = set(normalized1) | set(normalized2)
    matching = sum(
        1
        for key in all_keys
        if key in normalized1
        and key in normalized2
        and _canonical(normalized1[key]) == _canonical(normalized2[key])
    )
    return matching / len(all_keys)


def find_parameter_differences(params1: Dict[str, Any], params2: Dict[str, Any]) -> List[str]:
    normalized1 = normalize_parameters(params1)
    normalized2 = normalize_parameters(params2)
    differences: List[str] = []
    for key in list(dict.fromkeys([*normalized1, *normalized2])):
        if key not in normalized1:
            differences.append(f"Missing parameter: {key}")
        elif key not in normalized2:
            differences.append(f"Extra parameter: {key}")
        elif _canonical(normalized1[key]) != _canonical(normalized2[key]):
            differences.append(f"Different value for: {key}")
    return differences


def compare_parameters(
    params1: Dict[str, Any],
    params2: Dict[str, Any],
    tool_slug1: str,
    tool_slug2: str,
    user_id1: Optional[str] = None,
    user_id2: Optional[str] = None,
) -> Dict[str, Any]:
    if generate_parameter_hash(params1, tool_slug1, user_id1) == generate_parameter_hash(
        params2, tool_slug2, user_id2
    ):
        return {"isDuplicate": True, "similarity": 1.0, "differences": []}

    similarity = calculate_similarity(params1, params2)
    return {
        "isDuplicate": similarity > DUPLICATE_THRESHOLD,
        "similarity": similarity,
        "differences": find_parameter_differences(params1, params2),
    }


def is_similar_parameters(
    params1: Dict[str, Any], params2: Dict[str, Any], threshold: float = SIMILAR_THRESHOLD
) -> bool:
    return calculate_similarity(params1, params2) >= threshold


def extract_key_parameters(parameters: Dict[str, Any], key_fields: Iterable[str]) -> Dict[str, Any]:
    return {field: parameters[field] for field in key_fields if field in parameters}


def validate_parameters(parameters: Any) -> Dict[str, Any]:
    errors: List[str] = []
    if not isinstance(parameters, dict):
        return {"isValid": False, "errors": ["Parameters must be an object"]}
    try:
        size = len(json.dumps(parameters))
    except (TypeError, ValueError):
        errors.append("Parameters must be JSON serializable")
    else:
        if size > MAX_PARAMETER_SIZE:
            errors.append("Parameters are too large (max 1MB)")
    return {"isValid": not errors, "errors": errors}


def get_parameter_summary(parameters: Dict[str, Any]) -> str:
    normalized = normalize_parameters(parameters)
    if not normalized:
        return "No parameters"

    keys = list(normalized)
    parts = []
    for key in keys[:3]:
        value = normalized[key]
        if isinstance(value, str) and len(value) > 20:
            parts.append(f"{key}: {value[:20]}...")
        else:
            parts.append(f"{key}: {json.dumps(value, ensure_ascii=False)}")
    summary = ", ".join(parts)
    if len(keys) > 3:
        summary = f"{summary} (+{len(keys) - 3} more)"
    return summary
