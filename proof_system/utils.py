"""
Utility Functions
=================

Group and scalar helpers shared by every backend primitive.

Key Operations:
- Multi-exponentiation: Compute ∏ g_i^{e_i}
- GT division for pairing equations
- Scalar arithmetic that does not rely on charm's operator coverage
  (negation, inversion, conversion from Python integers)
- Random scalars drawn from an explicit randomness source

According to charm-crypto documentation:
- Group operations use * for multiplication, ** for exponentiation
- Pairing is computed as pair(g1_elem, g2_elem)
"""

from typing import List

from charm.toolbox.pairinggroup import PairingGroup, ZR, G1, GT


def scalar(group: PairingGroup, value: int) -> ZR:
    """Python integer (any sign) to a scalar in Z_p."""
    return group.init(ZR, int(value) % int(group.order()))


def random_scalar(group: PairingGroup, rng) -> ZR:
    """
    Draw a uniformly random non-zero scalar.

    Parameters
    ----------
    group : PairingGroup
        The pairing group
    rng : random.Random-like
        Anything with ``randrange``; see ``groups.make_rng``
    """
    return group.init(ZR, rng.randrange(1, int(group.order())))


def neg(group: PairingGroup, x: ZR) -> ZR:
    return scalar(group, -int(x))


def inv(group: PairingGroup, x: ZR) -> ZR:
    """Multiplicative inverse in Z_p. Raises ZeroDivisionError for 0."""
    p = int(group.order())
    v = int(x) % p
    if v == 0:
        raise ZeroDivisionError("zero has no inverse")
    return group.init(ZR, pow(v, -1, p))


def identity(group: PairingGroup, kind=G1):
    return group.init(kind, 1)


def is_identity(group: PairingGroup, elem, kind=G1) -> bool:
    return elem == group.init(kind, 1)


def group_inv(group: PairingGroup, elem):
    """Inverse of a group element (G1, G2 or GT)."""
    return elem ** group.init(ZR, int(group.order()) - 1)


def multiexp(group: PairingGroup, bases: List, exponents: List[ZR], kind=G1):
    """
    Compute multi-exponentiation: ∏ bases[i]^{exponents[i]}.

    Parameters
    ----------
    group : PairingGroup
        The pairing group
    bases : List
        Base elements, all of type ``kind``
    exponents : List[ZR]
        Exponents in Z_p
    kind : int
        G1, G2 or GT; used for the identity when ``bases`` is empty

    Returns
    -------
    The product ∏ bases[i]^{exponents[i]}

    Notes
    -----
    - If bases is empty, returns the identity element of ``kind``
    - bases and exponents must have the same length
    """
    if len(bases) != len(exponents):
        raise ValueError(f"bases and exponents must have same length: {len(bases)} != {len(exponents)}")

    result = group.init(kind, 1)
    for base, exp in zip(bases, exponents):
        result *= base ** exp

    return result


def gt_div(numerator: GT, denominator: GT, group: PairingGroup) -> GT:
    """Division in GT: numerator * denominator^{-1}."""
    return numerator * group_inv(group, denominator)
