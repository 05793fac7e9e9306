"""
Result cache and fingerprint derivation.
"""

from hybrid_inference.cache.fingerprint import fingerprint, preferences_hash
from hybrid_inference.cache.result_cache import ResultCache

__all__ = ["ResultCache", "fingerprint", "preferences_hash"]
