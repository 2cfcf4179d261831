"""Codec equivalence validation.

Public API:
    - validate_tile: fail-fast MLT vs MVT parity check for one tile
    - outcome_from_error: failed ValidationOutcome from an EquivalenceError
    - comparable_keys: the property-key comparison used per feature
"""

from .validator import comparable_keys, outcome_from_error, validate_tile

__all__ = ["validate_tile", "outcome_from_error", "comparable_keys"]
