"""
Cache key derivation.

A fingerprint depends only on the request's values: entity id, event kind,
user id and a hash of the preferences. Two requests that are equal field by
field produce the same key regardless of object identity or the order in
which fields were supplied.
"""

import hashlib
import json

from hybrid_inference.models.request_models import InferenceRequest, Preferences


def _canonical(data: dict) -> str:
    return json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)


def preferences_hash(preferences: Preferences) -> str:
    """Stable hash of a Preferences value."""
    return hashlib.sha256(_canonical(preferences.model_dump(mode="json")).encode("utf-8")).hexdigest()


def fingerprint(request: InferenceRequest, prefix: str = "ai:suggestion:") -> str:
    """
    Derive the cache key for a request.

    Args:
        request: Inference request
        prefix: Key namespace prefix

    Returns:
        prefix + sha256 hex digest
    """
    context = request.context
    material = {
        "entity_id": context.entity_id,
        "event_kind": context.event_kind,
        "user_id": context.user_id,
        "preferences": preferences_hash(request.preferences),
    }
    digest = hashlib.sha256(_canonical(material).encode("utf-8")).hexdigest()
    return f"{prefix}{digest}"
