"""
Suggestion parsing and schema validation.

Turns the raw content of a remote completion into suggestion fields:

1. Parse: JSON object if the content is one, otherwise "Key: value" lines
2. Normalise: camelCase/spaced keys to snake_case, numeric fields to float
3. Defaults: missing fields are filled (confidence 0.8, safety 0.9)
4. Schema: validate against suggestion_v1.json (Draft 7)

Any failure raises TierResponseError (classified as unknown).
"""

import json
import math
from pathlib import Path
from typing import Any, Optional

import structlog
from jsonschema import Draft7Validator

from hybrid_inference.tiers.exceptions import TierResponseError

logger = structlog.get_logger(__name__)

DEFAULT_SCHEMA_PATH = Path(__file__).parent / "schemas" / "suggestion_v1.json"

# Unparseable or non-finite numeric values fall back to this
FALLBACK_SCORE = 0.5

SUGGESTION_DEFAULTS: dict[str, Any] = {
    "suggestion_type": "improvement",
    "confidence": 0.8,
    "safety_score": 0.9,
    "reasoning": "AI-generated suggestion based on automation context",
}

_KEY_ALIASES = {
    "suggestion type": "suggestion_type",
    "suggestiontype": "suggestion_type",
    "suggestion_type": "suggestion_type",
    "type": "suggestion_type",
    "confidence": "confidence",
    "safety score": "safety_score",
    "safetyscore": "safety_score",
    "safety_score": "safety_score",
    "reasoning": "reasoning",
    "rationale": "reasoning",
    "implementation": "implementation",
}

_NUMERIC_FIELDS = ("confidence", "safety_score")


def _parse_score(value: Any) -> Any:
    if isinstance(value, bool):
        return FALLBACK_SCORE
    try:
        score = float(value) if isinstance(value, (int, float)) else float(str(value).strip())
    except (ValueError, OverflowError):
        return FALLBACK_SCORE
    if not math.isfinite(score):
        return FALLBACK_SCORE
    return score


def _parse_lines(content: str) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    for line in content.splitlines():
        if ":" not in line:
            continue
        key, value = line.split(":", 1)
        key = key.strip().lstrip("-*").strip().lower()
        target = _KEY_ALIASES.get(key)
        if target is not None:
            fields[target] = value.strip()
    return fields


def parse_content(content: str) -> dict[str, Any]:
    """
    Parse completion content into raw suggestion fields.

    Raises:
        TierResponseError: Content is empty or yields no known field
    """
    if not content or not content.strip():
        raise TierResponseError("Completion content is empty or whitespace-only")

    fields: Optional[dict[str, Any]] = None
    try:
        parsed = json.loads(content)
        if isinstance(parsed, dict):
            fields = {}
            for key, value in parsed.items():
                fields[_KEY_ALIASES.get(str(key).strip().lower(), key)] = value
    except json.JSONDecodeError:
        pass

    if fields is None:
        fields = _parse_lines(content)
        if not fields:
            raise TierResponseError(
                "Completion content has no recognisable suggestion fields",
                details={"content_snippet": content[:500]},
            )

    for name in _NUMERIC_FIELDS:
        if name in fields:
            fields[name] = _parse_score(fields[name])

    return fields


class SuggestionValidator:
    """
    Parse + default + schema-check completion content.

    The schema is loaded lazily and cached.
    """

    def __init__(self, schema_path: Path = DEFAULT_SCHEMA_PATH):
        self.schema_path = Path(schema_path)
        self._validator: Draft7Validator | None = None

    def _get_validator(self) -> Draft7Validator:
        if self._validator is None:
            try:
                with open(self.schema_path, "r", encoding="utf-8") as f:
                    schema = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                raise TierResponseError(
                    f"Failed to load suggestion schema: {e}",
                    details={"schema_path": str(self.schema_path)},
                ) from e
            self._validator = Draft7Validator(schema)
            logger.info("Loaded suggestion schema", schema_path=str(self.schema_path))
        return self._validator

    def validate(self, content: str) -> dict[str, Any]:
        """
        Turn completion content into validated suggestion fields.

        Returns:
            Dict with at least suggestion_type, confidence, safety_score, reasoning

        Raises:
            TierResponseError: Unparseable content or schema violation
        """
        fields = parse_content(content)
        for name, default in SUGGESTION_DEFAULTS.items():
            fields.setdefault(name, default)

        errors = list(self._get_validator().iter_errors(fields))
        if errors:
            messages = []
            for error in errors[:10]:
                path = ".".join(str(p) for p in error.path) if error.path else "root"
                messages.append(f"{path}: {error.message}")
            logger.warning("Suggestion failed schema validation", errors=messages)
            raise TierResponseError(
                f"Suggestion schema validation failed with {len(errors)} error(s)",
                details={"validation_errors": messages},
            )

        return fields
