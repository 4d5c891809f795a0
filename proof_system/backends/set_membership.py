"""
Set-Membership Range Proofs
===========================

Range proofs for a committed value x ∈ [min, max) built from Boneh-Boyen
signatures on digits (Camenisch, Chaabouni and shelat 2008) and the sumset
variant of Chaabouni, Lipmaa and Shelat (2010), in a pairing-checked and a
keyed-verification flavour.

Digit signatures:
-----------------
    key x, y = g2^x;  A_d = g1^{1/(x+d)} for every digit d of the digit set
    knowledge of a signature on a hidden digit d:
        V = A_d^v,   e(V, y) = e(V, g2)^{-d} · e(g1, g2)^v
    prover:  a = e(V^{-s} · g1^t, g2)           (keyed: a = V^{-s} · g1^t)
    check:   e(V, g2^{-z_d} · y^{-c}) · e(g1, g2)^{z_v} == a
    keyed:   V^{-z_d} · g1^{z_v} == a · (V^x)^c

Decompositions of x (comm = g^x · h^r):
---------------------------------------
    CCS, base u, u^l ≥ max - min:
        x - min       = Σ d_j u^j,   x - max + u^l = Σ e_j u^j     digits in [0, u)
    CLS, H = max - min - 1, G_j = ⌊(H + 2^j) / 2^{j+1}⌋, j = 0..⌊log2 H⌋:
        x - min = Σ b_j G_j                                       digits in {0, 1}

Each decomposition Σ w_j d_j = x + offset is tied to comm by
    D = g^{Σ w_j s_j} · h^{s_r},   check  g^{Σ w_j z_dj} · h^{z_r} == D · (comm · g^{offset})^c

A Schnorr proof on comm with bases (g, h) links x (slot 0) to the other
statements.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from charm.toolbox.pairinggroup import PairingGroup, ZR, G1, G2, GT, pair

from ..config import config
from ..errors import InvalidData, InvalidWitness
from ..groups import hash_to_generators
from ..serialization import ByteReader, ByteWriter
from ..transcript import Transcript
from ..utils import inv, is_identity, neg, random_scalar, scalar
from .schnorr import SchnorrProof, SchnorrProtocol

logger = logging.getLogger(__name__)


# ============================================================================
# Parameters
# ============================================================================

@dataclass
class DigitSignatures:
    """BB public key and signatures on every digit of one digit set."""

    y: G2
    signatures: List[G1]

    @property
    def digit_count(self) -> int:
        return len(self.signatures)


@dataclass
class SmcSecretKey:
    """Secret keys for keyed verification, one per digit set."""

    x_ccs: ZR
    x_cls: ZR


@dataclass
class SmcParams:
    """
    Commitment key, pairing generators and digit signatures.

    Attributes
    ----------
    g, h : G1
        Commitment key
    g1 : G1, g2 : G2
        BB signature generators
    base : int
        Digit base u of CCS proofs
    ccs : DigitSignatures
        Signatures on 0, ..., u-1
    cls : DigitSignatures
        Signatures on 0 and 1 under an independent key
    """

    g: G1
    h: G1
    g1: G1
    g2: G2
    base: int
    ccs: DigitSignatures
    cls: DigitSignatures

    @classmethod
    def generate_using_rng(cls, group: PairingGroup, label: bytes, rng,
                           base: Optional[int] = None) -> Tuple['SmcParams', SmcSecretKey]:
        """
        Hash the generators from ``label`` and sample both signing keys.
        ``base`` defaults to ``config.smc_base``.

        Returns
        -------
        params : SmcParams
        secret_key : SmcSecretKey
            Kept by the verifier for keyed verification, otherwise discarded
        """
        if base is None:
            base = config.smc_base
        if base < 2:
            raise ValueError(f"Digit base must be at least 2, got {base}")
        g, h, g1 = hash_to_generators(group, b"SMC|" + label, 3, G1)
        g2 = hash_to_generators(group, b"SMC|" + label, 1, G2)[0]
        x_ccs = random_scalar(group, rng)
        x_cls = random_scalar(group, rng)

        def sign_digits(x: ZR, count: int) -> DigitSignatures:
            return DigitSignatures(
                g2 ** x, [g1 ** inv(group, x + scalar(group, d)) for d in range(count)]
            )

        params = cls(g, h, g1, g2, base, sign_digits(x_ccs, base), sign_digits(x_cls, 2))
        return params, SmcSecretKey(x_ccs, x_cls)

    def append_to_transcript(self, transcript: Transcript):
        transcript.append_element(b"smc/g", self.g)
        transcript.append_element(b"smc/h", self.h)
        transcript.append_element(b"smc/g1", self.g1)
        transcript.append_element(b"smc/g2", self.g2, G2)
        transcript.append_u64(b"smc/base", self.base)
        for label, sigs in ((b"smc/ccs", self.ccs), (b"smc/cls", self.cls)):
            transcript.append_element(label + b"/y", sigs.y, G2)
            transcript.append_elements(label + b"/sigs", sigs.signatures)


# ============================================================================
# Decomposition layouts
# ============================================================================

@dataclass
class _Decomposition:
    weights: List[int]
    offset: int


def ccs_digit_count(base: int, min_value: int, max_value: int) -> int:
    """Smallest l ≥ 1 with base^l ≥ max - min."""
    l, span = 1, base
    while span < max_value - min_value:
        l += 1
        span *= base
    return l


def ccs_layout(base: int, min_value: int, max_value: int) -> List[_Decomposition]:
    l = ccs_digit_count(base, min_value, max_value)
    weights = [base ** j for j in range(l)]
    return [_Decomposition(weights, -min_value), _Decomposition(weights, base ** l - max_value)]


def cls_weights(min_value: int, max_value: int) -> List[int]:
    """G_j = ⌊(H + 2^j) / 2^{j+1}⌋ for j = 0..⌊log2 H⌋, H = max - min - 1."""
    H = max_value - min_value - 1
    if H == 0:
        return []
    return [(H + (1 << j)) >> (j + 1) for j in range(H.bit_length())]


def cls_layout(min_value: int, max_value: int) -> List[_Decomposition]:
    return [_Decomposition(cls_weights(min_value, max_value), -min_value)]


def base_digits(v: int, base: int, l: int) -> List[int]:
    digits = []
    for _ in range(l):
        v, d = divmod(v, base)
        digits.append(d)
    return digits


def sumset_digits(v: int, weights: List[int]) -> List[int]:
    """
    Binary digits b_j with Σ b_j G_j = v, taking the largest G_j first.

    Raises
    ------
    InvalidWitness
        If v is not representable
    """
    digits = [0] * len(weights)
    rest = v
    for j in sorted(range(len(weights)), key=lambda j: weights[j], reverse=True):
        if weights[j] <= rest:
            digits[j] = 1
            rest -= weights[j]
    if rest != 0:
        raise InvalidWitness("Value cannot be decomposed over the sumset")
    return digits


# ============================================================================
# Digit proofs
# ============================================================================

class _DigitProver:
    def __init__(self, group: PairingGroup, rng, params: SmcParams, sigs: DigitSignatures,
                 digit: int, keyed: bool):
        self.digit = scalar(group, digit)
        self.v = random_scalar(group, rng)
        self.s = random_scalar(group, rng)
        self.t = random_scalar(group, rng)
        self.V = sigs.signatures[digit] ** self.v
        a = (self.V ** neg(group, self.s)) * (params.g1 ** self.t)
        self.a = a if keyed else pair(a, params.g2)

    def respond(self, challenge: ZR) -> 'DigitProof':
        return DigitProof(self.V, self.a, self.s + challenge * self.digit,
                          self.t + challenge * self.v)


@dataclass
class DigitProof:
    V: G1
    a: object
    z_d: ZR
    z_v: ZR

    def verify(self, group: PairingGroup, params: SmcParams, sigs: DigitSignatures,
               challenge: ZR, secret_key: Optional[ZR] = None) -> bool:
        if is_identity(group, self.V):
            return False
        if secret_key is not None:
            lhs = (self.V ** neg(group, self.z_d)) * (params.g1 ** self.z_v)
            return lhs == self.a * ((self.V ** secret_key) ** challenge)
        g2_part = (params.g2 ** neg(group, self.z_d)) * (sigs.y ** neg(group, challenge))
        lhs = pair(self.V, g2_part) * (pair(params.g1, params.g2) ** self.z_v)
        return lhs == self.a

    def serialize(self, writer: ByteWriter, keyed: bool):
        writer.write_element(self.V)
        writer.write_element(self.a, G1 if keyed else GT)
        writer.write_scalar(self.z_d)
        writer.write_scalar(self.z_v)

    @classmethod
    def deserialize(cls, reader: ByteReader, keyed: bool) -> 'DigitProof':
        V = reader.read_element()
        a = reader.read_element(G1 if keyed else GT)
        return cls(V, a, reader.read_scalar(), reader.read_scalar())


@dataclass
class DecompositionProof:
    digits: List[DigitProof]
    D: G1
    z_r: ZR

    def serialize(self, writer: ByteWriter, keyed: bool):
        writer.write_varint(len(self.digits))
        for d in self.digits:
            d.serialize(writer, keyed)
        writer.write_element(self.D)
        writer.write_scalar(self.z_r)

    @classmethod
    def deserialize(cls, reader: ByteReader, keyed: bool) -> 'DecompositionProof':
        count = reader.read_varint()
        if count > 64:
            raise InvalidData(f"Decomposition with {count} digits")
        digits = [DigitProof.deserialize(reader, keyed) for _ in range(count)]
        return cls(digits, reader.read_element(), reader.read_scalar())


class _DecompositionProver:
    def __init__(self, group: PairingGroup, rng, params: SmcParams, sigs: DigitSignatures,
                 digits: List[int], weights: List[int], r: ZR, keyed: bool):
        self.r = r
        self.digit_provers = [_DigitProver(group, rng, params, sigs, d, keyed) for d in digits]
        self.s_r = random_scalar(group, rng)
        g_exp = scalar(group, 0)
        for w, p in zip(weights, self.digit_provers):
            g_exp = g_exp + scalar(group, w) * p.s
        self.D = (params.g ** g_exp) * (params.h ** self.s_r)

    def respond(self, challenge: ZR) -> DecompositionProof:
        return DecompositionProof([p.respond(challenge) for p in self.digit_provers], self.D,
                                  self.s_r + challenge * self.r)


def _append_decompositions(transcript: Transcript, comm: G1, decompositions, keyed: bool):
    transcript.append_element(b"smc/comm", comm)
    for dec in decompositions:
        digits = dec.digit_provers if isinstance(dec, _DecompositionProver) else dec.digits
        transcript.append_u64(b"smc/digits/len", len(digits))
        for d in digits:
            transcript.append_element(b"smc/V", d.V)
            transcript.append_element(b"smc/a", d.a, G1 if keyed else GT)
        transcript.append_element(b"smc/D", dec.D)


# ============================================================================
# Range proofs
# ============================================================================

class SetMembershipRangeProtocol:
    """
    Prover for x ∈ [min, max) with CCS or CLS decomposition.

    Parameters
    ----------
    use_cls : bool
        Sumset decomposition (CLS) instead of base-u digits (CCS)
    keyed : bool
        Produce the keyed-verification variant (no pairings for the prover
        or the verifier)
    value_blinding : ZR
        Blinding for x, shared when x is linked to other statements
    """

    def __init__(self, group: PairingGroup, rng, value: int, min_value: int, max_value: int,
                 params: SmcParams, value_blinding: ZR, use_cls: bool, keyed: bool = False):
        if not min_value <= value < max_value:
            raise InvalidWitness(f"Value is not in the range [{min_value}, {max_value})")
        self.use_cls = use_cls
        self.keyed = keyed
        x = scalar(group, value)
        r = random_scalar(group, rng)
        self.comm = (params.g ** x) * (params.h ** r)
        self.sp = SchnorrProtocol(group, [params.g, params.h], [x, r],
                                  [value_blinding, random_scalar(group, rng)])

        if use_cls:
            layout, sigs = cls_layout(min_value, max_value), params.cls
            digit_lists = [sumset_digits(value - min_value, layout[0].weights)]
        else:
            layout, sigs = ccs_layout(params.base, min_value, max_value), params.ccs
            l = len(layout[0].weights)
            digit_lists = [base_digits(value + dec.offset, params.base, l) for dec in layout]
        self.decompositions = [
            _DecompositionProver(group, rng, params, sigs, digits, dec.weights, r, keyed)
            for digits, dec in zip(digit_lists, layout)
        ]

    def challenge_contribution(self, transcript: Transcript):
        _append_decompositions(transcript, self.comm, self.decompositions, self.keyed)
        self.sp.challenge_contribution(transcript, self.comm, b"smc/comm")

    def gen_proof(self, challenge: ZR):
        cls = CLSRangeProof if self.use_cls else CCSRangeProof
        return cls(self.comm, self.sp.gen_proof(challenge),
                   [d.respond(challenge) for d in self.decompositions])


class _SetMembershipRangeProof:
    """Shared verification of CCS and CLS proofs."""

    decomposition_count = 0

    def __init__(self, comm: G1, sp: SchnorrProof, decompositions: List[DecompositionProof]):
        self.comm = comm
        self.sp = sp
        self.decompositions = decompositions

    def __eq__(self, other):
        return (type(self) is type(other) and self.comm == other.comm and self.sp == other.sp
                and self.decompositions == other.decompositions)

    def _layout(self, params: SmcParams, min_value: int, max_value: int) -> List[_Decomposition]:
        raise NotImplementedError

    def _signatures(self, params: SmcParams) -> DigitSignatures:
        raise NotImplementedError

    def _secret_key(self, secret_key: SmcSecretKey) -> ZR:
        raise NotImplementedError

    def challenge_contribution(self, transcript: Transcript, params: SmcParams, keyed: bool):
        _append_decompositions(transcript, self.comm, self.decompositions, keyed)
        self.sp.challenge_contribution(transcript, [params.g, params.h], self.comm,
                                       label=b"smc/comm")

    def verify(self, group: PairingGroup, min_value: int, max_value: int, challenge: ZR,
               params: SmcParams, secret_key: Optional[SmcSecretKey] = None) -> bool:
        """
        Verify with pairings, or with ``secret_key`` for keyed verification.
        """
        layout = self._layout(params, min_value, max_value)
        if len(layout) != len(self.decompositions):
            return False
        if not self.sp.verify(group, [params.g, params.h], self.comm, challenge):
            return False
        sigs = self._signatures(params)
        sk = self._secret_key(secret_key) if secret_key is not None else None
        for dec, proof in zip(layout, self.decompositions):
            if len(proof.digits) != len(dec.weights):
                logger.debug("Set-membership proof rejected: expected %d digits", len(dec.weights))
                return False
            if not all(d.verify(group, params, sigs, challenge, sk) for d in proof.digits):
                logger.debug("Set-membership proof rejected: digit signature proof failed")
                return False
            g_exp = scalar(group, 0)
            for w, d in zip(dec.weights, proof.digits):
                g_exp = g_exp + scalar(group, w) * d.z_d
            lhs = (params.g ** g_exp) * (params.h ** proof.z_r)
            target = self.comm * (params.g ** scalar(group, dec.offset))
            if lhs != proof.D * (target ** challenge):
                logger.debug("Set-membership proof rejected: digits do not recombine to comm")
                return False
        return True

    def get_resp_for_value(self) -> ZR:
        return self.sp.response.get_response(0)

    def serialize(self, writer: ByteWriter, keyed: bool):
        writer.write_element(self.comm)
        self.sp.serialize(writer)
        for d in self.decompositions:
            d.serialize(writer, keyed)

    @classmethod
    def deserialize(cls, reader: ByteReader, keyed: bool):
        comm = reader.read_element()
        sp = SchnorrProof.deserialize(reader)
        if len(sp.response) != 2:
            raise InvalidData("Commitment opening must carry 2 responses")
        decs = [DecompositionProof.deserialize(reader, keyed) for _ in range(cls.decomposition_count)]
        return cls(comm, sp, decs)


class CCSRangeProof(_SetMembershipRangeProof):
    decomposition_count = 2

    def _layout(self, params, min_value, max_value):
        return ccs_layout(params.base, min_value, max_value)

    def _signatures(self, params):
        return params.ccs

    def _secret_key(self, secret_key):
        return secret_key.x_ccs


class CLSRangeProof(_SetMembershipRangeProof):
    decomposition_count = 1

    def _layout(self, params, min_value, max_value):
        return cls_layout(min_value, max_value)

    def _signatures(self, params):
        return params.cls

    def _secret_key(self, secret_key):
        return secret_key.x_cls
