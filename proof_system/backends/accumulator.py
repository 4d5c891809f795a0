"""
Bilinear Map Accumulator
========================

Pairing based accumulator (Nguyen 2005, Damgård and Triandopoulos 2008)
with membership and non-membership witnesses, and the zero-knowledge proofs
that a committed element is (not) accumulated.

Key Concepts:
-------------
- Accumulator value f ∈ G1: f = g^{∏_{x∈X}(x + s)}, f_∅ = g
- Public key (g, ĝ, ĝ^s): g in params, ĝ^s in the public key
- Membership witness w:          w^{y+s} = f
- Non-membership witness (w, u): w^{y+s} = f · g^u,  u = -∏_{x∈X}(x - y) ≠ 0

Witnesses are computed either with the secret key s, or without it from the
server keys (g, g^s, ..., g^{s^q}) by polynomial arithmetic over Z_p.

Zero-knowledge membership (element y hidden):
---------------------------------------------
    W' = w^r,  W̄ = W'^{-y} · f^r
    check  W' ≠ 1,  e(W', ĝ^s) = e(W̄, ĝ)
    Schnorr:  W̄ = (W'^{-1})^y · f^r                     (slot 0 = y)

Zero-knowledge non-membership:
------------------------------
    W' = w^r,  D = g^{u·r},  W̄ = W'^{-y} · f^r · D
    check  D ≠ 1,  e(W', ĝ^s) = e(W̄, ĝ)
    Schnorr:  W̄ · D^{-1} = (W'^{-1})^y · f^r  and  D = g^{u·r}

Security:
---------
q-Strong Diffie-Hellman / q-SBDH.
"""

import logging
from dataclasses import dataclass
from typing import List, Tuple

import numpy as np
from charm.toolbox.pairinggroup import PairingGroup, ZR, G1, G2, pair

from ..errors import InvalidData, InvalidWitness
from ..groups import hash_to_generators
from ..serialization import ByteReader, ByteWriter
from ..transcript import Transcript
from ..utils import group_inv, identity, inv, is_identity, neg, random_scalar, scalar
from .schnorr import SchnorrProof, SchnorrProtocol

logger = logging.getLogger(__name__)


def hash_element(group: PairingGroup, item_bytes: bytes) -> ZR:
    """
    Hash an arbitrary item to a non-zero element of Z_p.

    If the hash is zero, a null byte is appended and the item rehashed.
    """
    h = group.hash(item_bytes, ZR)
    while h == 0:
        item_bytes += b'\x00'
        h = group.hash(item_bytes, ZR)
    return h


# ============================================================================
# Keys and witnesses
# ============================================================================

@dataclass
class AccumulatorParams:
    """Public generators g ∈ G1 and ĝ ∈ G2."""

    g: G1
    g_hat: G2

    @classmethod
    def generate_using_label(cls, group: PairingGroup, label: bytes) -> 'AccumulatorParams':
        g = hash_to_generators(group, b"ACC|" + label, 1, G1)[0]
        g_hat = hash_to_generators(group, b"ACC|" + label, 1, G2)[0]
        return cls(g, g_hat)

    def append_to_transcript(self, transcript: Transcript):
        transcript.append_element(b"acc/params/g", self.g)
        transcript.append_element(b"acc/params/g^", self.g_hat, G2)


@dataclass
class AccumulatorPublicKey:
    g_hat_s: G2

    def append_to_transcript(self, transcript: Transcript):
        transcript.append_element(b"acc/pk", self.g_hat_s, G2)


class AccumulatorKeypair:
    def __init__(self, secret_key: ZR, public_key: AccumulatorPublicKey):
        self.secret_key = secret_key
        self.public_key = public_key

    @classmethod
    def generate(cls, group: PairingGroup, params: AccumulatorParams, rng) -> 'AccumulatorKeypair':
        s = random_scalar(group, rng)
        return cls(s, AccumulatorPublicKey(params.g_hat ** s))


@dataclass
class MembershipWitness:
    w: G1


@dataclass
class NonMembershipWitness:
    w: G1
    u: ZR


# ============================================================================
# Accumulator
# ============================================================================

class Accumulator:
    """
    Accumulator over a set of Z_p elements.

    Parameters
    ----------
    group : PairingGroup
        The pairing group (asymmetric pairings)
    params : AccumulatorParams
        Public generators

    Notes
    -----
    The accumulator keeps the accumulated elements so that the manager can
    compute witnesses and server keys; only ``value`` is public.
    """

    def __init__(self, group: PairingGroup, params: AccumulatorParams):
        self.group = group
        self.params = params
        self.value = params.g
        self.elements: List[ZR] = []

    def __contains__(self, element: ZR) -> bool:
        return element in self.elements

    def add(self, element: ZR, secret_key: ZR) -> G1:
        """
        Accumulate ``element``: f_new = f^{y + s}.

        Returns
        -------
        G1
            The new accumulator value
        """
        if element in self.elements:
            raise ValueError("Element already accumulated")
        self.value = self.value ** (element + secret_key)
        self.elements.append(element)
        return self.value

    def remove(self, element: ZR, secret_key: ZR) -> G1:
        """Remove ``element``: f_new = f^{1/(y + s)}."""
        if element not in self.elements:
            raise ValueError("Element is not accumulated")
        self.value = self.value ** inv(self.group, element + secret_key)
        self.elements.remove(element)
        return self.value

    # ------------------------------------------------------------------
    # Witnesses with the secret key
    # ------------------------------------------------------------------

    def membership_witness(self, element: ZR, secret_key: ZR) -> MembershipWitness:
        """w = f^{1/(y+s)}"""
        if element not in self.elements:
            raise InvalidWitness("Cannot create a membership witness for a non-member")
        return MembershipWitness(self.value ** inv(self.group, element + secret_key))

    def non_membership_witness(self, element: ZR, secret_key: ZR) -> NonMembershipWitness:
        """
        (w, u) with u = -∏(x - y) and w = g^{(f_X(s) + u)/(y + s)}.

        Notes
        -----
        f_X(s) = ∏(x + s) is the discrete log of f to base g.
        """
        u = self._non_member_u(element)
        p = int(self.group.order())
        s = int(secret_key)
        f_s = 1
        for x in self.elements:
            f_s = (f_s * (int(x) + s)) % p
        exp = scalar(self.group, f_s + u) * inv(self.group, element + secret_key)
        return NonMembershipWitness(self.params.g ** exp, scalar(self.group, u))

    # ------------------------------------------------------------------
    # Witnesses from server keys
    # ------------------------------------------------------------------

    def server_keys(self, secret_key: ZR) -> Tuple:
        """(g, g^s, ..., g^{s^q}) for q = number of accumulated elements."""
        keys = (self.params.g,)
        for _ in range(len(self.elements)):
            keys, _ = expand_server_keys(secret_key, keys)
        return keys

    def membership_witness_from_server_keys(self, element: ZR,
                                            server_keys: Tuple) -> MembershipWitness:
        """
        w = g^{∏_{x∈X, x≠y}(x + s)}, evaluated from the server keys.
        """
        if element not in self.elements:
            raise InvalidWitness("Cannot create a membership witness for a non-member")
        others = [x for x in self.elements if x != element]
        coeffs = _polynomial_coefficients(others, int(self.group.order()))
        return MembershipWitness(_eval_in_exponent(self.group, coeffs, server_keys))

    def non_membership_witness_from_server_keys(self, element: ZR,
                                                server_keys: Tuple) -> NonMembershipWitness:
        """
        Non-membership witness without the secret key.

        Algorithm:
        1. u = -∏_{x∈X}(x - y) mod p; u = 0 iff y ∈ X
        2. f_X(κ) = ∏_{x∈X}(x + κ)
        3. h_X(κ) = f_X(κ) - f_X(-y) = f_X(κ) + u
        4. q̂_X(κ) = h_X(κ) / (κ + y)
        5. w = g^{q̂_X(s)} = ∏ (g^{s^i})^{v_i}
        """
        u = self._non_member_u(element)
        p = int(self.group.order())
        if not self.elements:
            return NonMembershipWitness(identity(self.group), scalar(self.group, u))

        f_coeffs = _polynomial_coefficients(self.elements, p)
        h_coeffs = f_coeffs.copy()
        h_coeffs[0] = (int(h_coeffs[0]) + u) % p
        divisor = np.array([int(element), 1], dtype=object)
        q_hat = _polynomial_division(h_coeffs, divisor, p)
        return NonMembershipWitness(_eval_in_exponent(self.group, q_hat, server_keys),
                                    scalar(self.group, u))

    def _non_member_u(self, element: ZR) -> int:
        p = int(self.group.order())
        prod = 1
        for x in self.elements:
            prod = (prod * (int(x) - int(element))) % p
        u = (-prod) % p
        if u == 0:
            raise InvalidWitness("Element is accumulated, cannot prove non-membership")
        return u

    # ------------------------------------------------------------------
    # Plain (non-ZK) verification
    # ------------------------------------------------------------------

    @staticmethod
    def verify_membership(params: AccumulatorParams, public_key: AccumulatorPublicKey,
                          value: G1, element: ZR, witness: MembershipWitness) -> bool:
        """e(w, ĝ^y · ĝ^s) == e(f, ĝ)"""
        lhs = pair(witness.w, (params.g_hat ** element) * public_key.g_hat_s)
        return lhs == pair(value, params.g_hat)

    @staticmethod
    def verify_non_membership(group: PairingGroup, params: AccumulatorParams,
                              public_key: AccumulatorPublicKey, value: G1, element: ZR,
                              witness: NonMembershipWitness) -> bool:
        """e(w, ĝ^y · ĝ^s) == e(f · g^u, ĝ) with u ≠ 0"""
        if witness.u == group.init(ZR, 0):
            return False
        lhs = pair(witness.w, (params.g_hat ** element) * public_key.g_hat_s)
        return lhs == pair(value * (params.g ** witness.u), params.g_hat)


def expand_server_keys(secret_key: ZR, server_keys: Tuple) -> Tuple[Tuple, G1]:
    """
    Append g^{s^{q+1}} = (g^{s^q})^s to the server keys.

    Returns
    -------
    new_server_keys : Tuple
        (g, g^s, ..., g^{s^{q+1}})
    g_s_q : G1
        The new key
    """
    g_s_q = server_keys[-1] ** secret_key
    return server_keys + (g_s_q,), g_s_q


def _polynomial_coefficients(X: List[ZR], p: int) -> np.ndarray:
    """Coefficients [c_0, ..., c_q] of ∏_{x∈X}(x + κ) over Z_p."""
    poly = np.array([1], dtype=object)
    for x in X:
        new_poly = np.zeros(len(poly) + 1, dtype=object)
        new_poly[:-1] += poly * (int(x) % p)
        new_poly[1:] += poly
        poly = new_poly % p
    return poly


def _polynomial_division(dividend_coeffs: np.ndarray, divisor_coeffs: np.ndarray,
                         p: int) -> np.ndarray:
    """Quotient of dividend / divisor in Z_p[κ] (long division)."""
    dividend = np.trim_zeros(dividend_coeffs, 'b')
    divisor = np.trim_zeros(divisor_coeffs, 'b')
    if len(divisor) == 0:
        raise ValueError("Division by zero polynomial")
    if len(dividend) < len(divisor):
        return np.array([0], dtype=object)

    quotient = np.zeros(len(dividend) - len(divisor) + 1, dtype=object)
    remainder = dividend.copy()
    lead_inv = pow(int(divisor[-1]) % p, -1, p)
    for i in range(len(quotient) - 1, -1, -1):
        coeff = (int(remainder[i + len(divisor) - 1]) * lead_inv) % p
        quotient[i] = coeff
        for j in range(len(divisor)):
            remainder[i + j] = (int(remainder[i + j]) - coeff * int(divisor[j])) % p
    return quotient % p


def _eval_in_exponent(group: PairingGroup, coeffs: np.ndarray, server_keys: Tuple) -> G1:
    """g^{P(s)} = ∏ (g^{s^i})^{c_i}"""
    if len(coeffs) > len(server_keys):
        raise ValueError(
            f"Insufficient server keys: need {len(coeffs)}, have {len(server_keys)}"
        )
    result = identity(group)
    for key, c in zip(server_keys, coeffs):
        result *= key ** group.init(ZR, int(c))
    return result


# ============================================================================
# Zero-knowledge membership
# ============================================================================

class MembershipProofProtocol:
    """
    Prover side of the ZK membership proof.

    Parameters
    ----------
    element_blinding : ZR
        Blinding for the element; shared when the element is linked to
        other statements
    """

    def __init__(self, group: PairingGroup, rng, element: ZR, witness: MembershipWitness,
                 accumulator_value: G1, element_blinding: ZR):
        self.group = group
        r = random_scalar(group, rng)
        self.W_prime = witness.w ** r
        self.W_bar = (self.W_prime ** neg(group, element)) * (accumulator_value ** r)
        self._bases = [group_inv(group, self.W_prime), accumulator_value]
        self.sc = SchnorrProtocol(group, self._bases, [element, r],
                                  [element_blinding, random_scalar(group, rng)])

    def challenge_contribution(self, transcript: Transcript):
        transcript.append_element(b"acc/W'", self.W_prime)
        transcript.append_element(b"acc/Wbar", self.W_bar)
        self.sc.challenge_contribution(transcript, self.W_bar, b"acc/mem")

    def gen_proof(self, challenge: ZR) -> 'MembershipProof':
        return MembershipProof(self.W_prime, self.W_bar, self.sc.gen_proof(challenge))


@dataclass
class MembershipProof:
    W_prime: G1
    W_bar: G1
    sc: SchnorrProof

    def _bases(self, group: PairingGroup, accumulator_value: G1) -> List[G1]:
        return [group_inv(group, self.W_prime), accumulator_value]

    def challenge_contribution(self, transcript: Transcript, group: PairingGroup,
                               accumulator_value: G1):
        transcript.append_element(b"acc/W'", self.W_prime)
        transcript.append_element(b"acc/Wbar", self.W_bar)
        self.sc.challenge_contribution(transcript, self._bases(group, accumulator_value),
                                       self.W_bar, label=b"acc/mem")

    def verify(self, group: PairingGroup, accumulator_value: G1, challenge: ZR,
               public_key: AccumulatorPublicKey, params: AccumulatorParams) -> bool:
        if is_identity(group, self.W_prime):
            logger.debug("Membership proof rejected: W' is the identity")
            return False
        if pair(self.W_prime, public_key.g_hat_s) != pair(self.W_bar, params.g_hat):
            logger.debug("Membership proof rejected: pairing check failed")
            return False
        return self.sc.verify(group, self._bases(group, accumulator_value), self.W_bar, challenge)

    def get_resp_for_element(self) -> ZR:
        return self.sc.response.get_response(0)

    def serialize(self, writer: ByteWriter):
        writer.write_element(self.W_prime)
        writer.write_element(self.W_bar)
        self.sc.serialize(writer)

    @classmethod
    def deserialize(cls, reader: ByteReader) -> 'MembershipProof':
        W_prime = reader.read_element()
        W_bar = reader.read_element()
        sc = SchnorrProof.deserialize(reader)
        if len(sc.response) != 2:
            raise InvalidData("Membership proof must carry 2 responses")
        return cls(W_prime, W_bar, sc)


# ============================================================================
# Zero-knowledge non-membership
# ============================================================================

class NonMembershipProofProtocol:
    def __init__(self, group: PairingGroup, rng, element: ZR, witness: NonMembershipWitness,
                 accumulator_value: G1, params: AccumulatorParams, element_blinding: ZR):
        self.group = group
        self.params = params
        r = random_scalar(group, rng)
        t = witness.u * r
        self.W_prime = witness.w ** r
        self.D = params.g ** t
        self.W_bar = (self.W_prime ** neg(group, element)) * (accumulator_value ** r) * self.D
        self._y1 = self.W_bar * group_inv(group, self.D)
        bases = [group_inv(group, self.W_prime), accumulator_value]
        self.sc1 = SchnorrProtocol(group, bases, [element, r],
                                   [element_blinding, random_scalar(group, rng)])
        self.sc2 = SchnorrProtocol(group, [params.g], [t], [random_scalar(group, rng)])

    def challenge_contribution(self, transcript: Transcript):
        transcript.append_element(b"acc/W'", self.W_prime)
        transcript.append_element(b"acc/Wbar", self.W_bar)
        transcript.append_element(b"acc/D", self.D)
        self.sc1.challenge_contribution(transcript, self._y1, b"acc/non-mem")
        self.sc2.challenge_contribution(transcript, self.D, b"acc/non-mem/d")

    def gen_proof(self, challenge: ZR) -> 'NonMembershipProof':
        return NonMembershipProof(self.W_prime, self.W_bar, self.D,
                                  self.sc1.gen_proof(challenge), self.sc2.gen_proof(challenge))


@dataclass
class NonMembershipProof:
    W_prime: G1
    W_bar: G1
    D: G1
    sc1: SchnorrProof
    sc2: SchnorrProof

    def _relations(self, group: PairingGroup, accumulator_value: G1):
        bases = [group_inv(group, self.W_prime), accumulator_value]
        return bases, self.W_bar * group_inv(group, self.D)

    def challenge_contribution(self, transcript: Transcript, group: PairingGroup,
                               accumulator_value: G1, params: AccumulatorParams):
        bases, y1 = self._relations(group, accumulator_value)
        transcript.append_element(b"acc/W'", self.W_prime)
        transcript.append_element(b"acc/Wbar", self.W_bar)
        transcript.append_element(b"acc/D", self.D)
        self.sc1.challenge_contribution(transcript, bases, y1, label=b"acc/non-mem")
        self.sc2.challenge_contribution(transcript, [params.g], self.D, label=b"acc/non-mem/d")

    def verify(self, group: PairingGroup, accumulator_value: G1, challenge: ZR,
               public_key: AccumulatorPublicKey, params: AccumulatorParams) -> bool:
        if is_identity(group, self.D):
            logger.debug("Non-membership proof rejected: D is the identity")
            return False
        if pair(self.W_prime, public_key.g_hat_s) != pair(self.W_bar, params.g_hat):
            logger.debug("Non-membership proof rejected: pairing check failed")
            return False
        bases, y1 = self._relations(group, accumulator_value)
        return (self.sc1.verify(group, bases, y1, challenge)
                and self.sc2.verify(group, [params.g], self.D, challenge))

    def get_resp_for_element(self) -> ZR:
        return self.sc1.response.get_response(0)

    def serialize(self, writer: ByteWriter):
        writer.write_element(self.W_prime)
        writer.write_element(self.W_bar)
        writer.write_element(self.D)
        self.sc1.serialize(writer)
        self.sc2.serialize(writer)

    @classmethod
    def deserialize(cls, reader: ByteReader) -> 'NonMembershipProof':
        W_prime = reader.read_element()
        W_bar = reader.read_element()
        D = reader.read_element()
        sc1 = SchnorrProof.deserialize(reader)
        sc2 = SchnorrProof.deserialize(reader)
        if len(sc1.response) != 2 or len(sc2.response) != 1:
            raise InvalidData("Non-membership proof has the wrong number of responses")
        return cls(W_prime, W_bar, D, sc1, sc2)
