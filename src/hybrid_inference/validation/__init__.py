"""
Parsing and validation of remote completion content into suggestion fields.
"""

from hybrid_inference.validation.suggestion_schema import (
    SUGGESTION_DEFAULTS,
    SuggestionValidator,
    parse_content,
)

__all__ = ["SUGGESTION_DEFAULTS", "SuggestionValidator", "parse_content"]
