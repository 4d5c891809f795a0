"""
Range-backend selection
=======================

Checks on the public bounds and witnessed values of range statements, and
the heuristic that picks the set-membership range proof algorithm.

Notes
-----
The 20-bit threshold and the single 64-bit limb restriction must not change:
prover and verifier pick the inner algorithm independently and have to agree.
"""

from charm.toolbox.pairinggroup import ZR

from .errors import BoundCheckMaxNotGreaterThanMin, UnsupportedValue

U64_MAX = (1 << 64) - 1

# ilog2(max - min) strictly below this selects the sumset (CLS) algorithm
CLS_THRESHOLD_BITS = 20


def validate_bounds(min_value: int, max_value: int):
    """
    Reject bounds that do not describe a non-empty range of u64 values.

    Raises
    ------
    BoundCheckMaxNotGreaterThanMin
        If ``max_value <= min_value``
    UnsupportedValue
        If either bound is not an unsigned 64-bit integer
    """
    for v in (min_value, max_value):
        if not isinstance(v, int) or not 0 <= v <= U64_MAX:
            raise UnsupportedValue(f"Bound {v!r} is not an unsigned 64-bit integer")
    if max_value <= min_value:
        raise BoundCheckMaxNotGreaterThanMin(min_value, max_value)


def enforce_and_get_u64(value: ZR) -> int:
    """
    Integer value of a scalar that fits in the lowest 64-bit limb.

    Raises
    ------
    UnsupportedValue
        Naming the value when any higher limb is non-zero
    """
    v = int(value)
    if v >> 64:
        raise UnsupportedValue(f"Value {v} does not fit in 64 bits")
    return v


def should_use_cls(min_value: int, max_value: int) -> bool:
    """
    True for the sumset algorithm (CLS), False for base-u set membership (CCS).

    >>> should_use_cls(0, 2 ** 19), should_use_cls(0, 2 ** 20)
    (True, False)
    """
    validate_bounds(min_value, max_value)
    return (max_value - min_value).bit_length() - 1 < CLS_THRESHOLD_BITS
