"""
Cache Key Generation
Stable, order-independent keys for user preferences
"""

import hashlib
import json
from typing import Any, Dict, Union

from ..schemas import UserPreferences

# Array fields whose order carries no meaning
UNORDERED_FIELDS = ("additional_destinations", "interests", "dietary_restrictions")

KEY_LENGTH = 16


def normalize_preferences(preferences: Union[UserPreferences, Dict[str, Any]]) -> Dict[str, Any]:
    """JSON-safe preference dict with unordered arrays sorted"""
    if isinstance(preferences, dict):
        preferences = UserPreferences.model_validate(preferences)

    normalized = preferences.model_dump(mode="json")
    for field in UNORDERED_FIELDS:
        normalized[field] = sorted(normalized.get(field) or [])
    return normalized


def generate_cache_key(preferences: Union[UserPreferences, Dict[str, Any]]) -> str:
    """
    Generate a cache key for preferences

    Returns:
        str: First 16 hex chars of the SHA-256 of the normalized JSON

    Example:
        >>> a = generate_cache_key({"interests": ["food", "art"]})
        >>> b = generate_cache_key({"interests": ["art", "food"]})
        >>> a == b
        True
    """
    payload = json.dumps(normalize_preferences(preferences), sort_keys=True)
    return hashlib.sha256(payload.encode()).hexdigest()[:KEY_LENGTH]


def fingerprint(data: Any) -> str:
    """Short SHA-256 digest of any JSON-serializable value"""
    payload = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(payload.encode()).hexdigest()[:KEY_LENGTH]
