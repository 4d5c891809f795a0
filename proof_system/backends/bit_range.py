"""
Bit-Decomposition Range Proof
=============================

Proves that the value x committed as comm = g^x · h^r lies in [min, max)
for 64-bit bounds, by committing to the bits of

    a = x - min            ∈ [0, 2^n)
    b = x - max + 2^n      ∈ [0, 2^n),     n = bitlen(max - min)

a ≥ 0 gives x ≥ min, b < 2^n gives x < max.

Per bit j (value β, blinding r_j):  B_j = g^β · h^{r_j}
    with Σ r_j 2^j = r, so  ∏ B_j^{2^j} = comm · g^{-min}  (resp. comm · g^{2^n - max})

Each B_j carries an OR proof (Cramer, Damgård, Schoenmakers 1994) that
B_j = h^{r_j} or B_j / g = h^{r_j}:

    real branch β:     t_β = h^w,  c_β = c - c_{1-β},  z_β = w + c_β · r_j
    simulated branch:  c_{1-β}, z_{1-β} random,  t_{1-β} = h^{z} · Y_{1-β}^{-c_{1-β}}
    proof (B, t0, t1, c0, z0, z1),  c1 = c - c0

A Schnorr proof on comm with bases (g, h) links x (slot 0) to the other
statements.
"""

import logging
from dataclasses import dataclass
from typing import List, Tuple

from charm.toolbox.pairinggroup import PairingGroup, ZR, G1

from ..errors import InvalidData, InvalidWitness
from ..serialization import ByteReader, ByteWriter
from ..transcript import Transcript
from ..utils import group_inv, multiexp, random_scalar, scalar
from .schnorr import PedersenCommitmentKey, SchnorrProof, SchnorrProtocol

logger = logging.getLogger(__name__)


def bit_count(min_value: int, max_value: int) -> int:
    return (max_value - min_value).bit_length()


def _offsets(group: PairingGroup, min_value: int, max_value: int) -> Tuple[ZR, ZR]:
    n = bit_count(min_value, max_value)
    return scalar(group, -min_value), scalar(group, (1 << n) - max_value)


class BitProver:
    """Commitment phase of one OR proof over the key (g, h)."""

    def __init__(self, group: PairingGroup, rng, params: PedersenCommitmentKey, bit: int, r_j: ZR):
        self.group = group
        self.bit = bit
        self.r_j = r_j
        self.B = (params.g ** scalar(group, bit)) * (params.h ** r_j)
        ys = [self.B, self.B * group_inv(group, params.g)]
        self.w = random_scalar(group, rng)
        self.c_sim = random_scalar(group, rng)
        self.z_sim = random_scalar(group, rng)
        t = [None, None]
        t[bit] = params.h ** self.w
        t[1 - bit] = (params.h ** self.z_sim) * group_inv(group, ys[1 - bit] ** self.c_sim)
        self.t0, self.t1 = t

    def respond(self, challenge: ZR) -> 'BitProof':
        c_real = challenge - self.c_sim
        z_real = self.w + c_real * self.r_j
        if self.bit == 0:
            return BitProof(self.B, self.t0, self.t1, c_real, z_real, self.z_sim)
        return BitProof(self.B, self.t0, self.t1, self.c_sim, self.z_sim, z_real)


@dataclass
class BitProof:
    B: G1
    t0: G1
    t1: G1
    c0: ZR
    z0: ZR
    z1: ZR

    def verify(self, group: PairingGroup, params: PedersenCommitmentKey, challenge: ZR) -> bool:
        c1 = challenge - self.c0
        y1 = self.B * group_inv(group, params.g)
        return (params.h ** self.z0 == self.t0 * (self.B ** self.c0)
                and params.h ** self.z1 == self.t1 * (y1 ** c1))

    def serialize(self, writer: ByteWriter):
        writer.write_element(self.B)
        writer.write_element(self.t0)
        writer.write_element(self.t1)
        writer.write_scalar(self.c0)
        writer.write_scalar(self.z0)
        writer.write_scalar(self.z1)

    @classmethod
    def deserialize(cls, reader: ByteReader) -> 'BitProof':
        return cls(reader.read_element(), reader.read_element(), reader.read_element(),
                   reader.read_scalar(), reader.read_scalar(), reader.read_scalar())


def split_blinding(group: PairingGroup, rng, r: ZR, weights: List[ZR]) -> List[ZR]:
    """r_1..r_{n-1} random, r_0 fixed so that Σ r_j w_j = r. Requires w_0 = 1."""
    rest = [random_scalar(group, rng) for _ in weights[1:]]
    r0 = r
    for r_j, w_j in zip(rest, weights[1:]):
        r0 = r0 - r_j * w_j
    return [r0] + rest


def powers_of_two(group: PairingGroup, n: int) -> List[ZR]:
    return [scalar(group, 1 << j) for j in range(n)]


def bits_of(v: int, n: int) -> List[int]:
    return [(v >> j) & 1 for j in range(n)]


def append_bit_commitments(transcript: Transcript, label: bytes, items: List):
    """Write (B, t0, t1) of every bit; ``items`` are ``BitProver``s or ``BitProof``s."""
    transcript.append_u64(label + b"/len", len(items))
    for p in items:
        transcript.append_element(label + b"/B", p.B)
        transcript.append_element(label + b"/t0", p.t0)
        transcript.append_element(label + b"/t1", p.t1)


class BitRangeProtocol:
    """
    Prover for x ∈ [min, max).

    Parameters
    ----------
    value : int
        The committed value as an unsigned 64-bit integer
    value_blinding : ZR
        Blinding for x, shared when x is linked to other statements
    """

    def __init__(self, group: PairingGroup, rng, value: int, min_value: int, max_value: int,
                 params: PedersenCommitmentKey, value_blinding: ZR):
        if not min_value <= value < max_value:
            raise InvalidWitness(f"Value is not in the range [{min_value}, {max_value})")
        self.group = group
        n = bit_count(min_value, max_value)
        x = scalar(group, value)
        r = random_scalar(group, rng)
        self.comm = (params.g ** x) * (params.h ** r)
        self.sp = SchnorrProtocol(group, [params.g, params.h], [x, r],
                                  [value_blinding, random_scalar(group, rng)])

        a = value - min_value
        b = value - max_value + (1 << n)
        weights = powers_of_two(group, n)
        self.lower = [BitProver(group, rng, params, bit, r_j)
                      for bit, r_j in zip(bits_of(a, n), split_blinding(group, rng, r, weights))]
        self.upper = [BitProver(group, rng, params, bit, r_j)
                      for bit, r_j in zip(bits_of(b, n), split_blinding(group, rng, r, weights))]

    def challenge_contribution(self, transcript: Transcript):
        transcript.append_element(b"range/comm", self.comm)
        append_bit_commitments(transcript, b"range/lower", self.lower)
        append_bit_commitments(transcript, b"range/upper", self.upper)
        self.sp.challenge_contribution(transcript, self.comm, b"range/comm")

    def gen_proof(self, challenge: ZR) -> 'BitRangeProof':
        return BitRangeProof(
            self.comm,
            [p.respond(challenge) for p in self.lower],
            [p.respond(challenge) for p in self.upper],
            self.sp.gen_proof(challenge),
        )


@dataclass
class BitRangeProof:
    comm: G1
    lower: List[BitProof]
    upper: List[BitProof]
    sp: SchnorrProof

    def challenge_contribution(self, transcript: Transcript, params: PedersenCommitmentKey):
        transcript.append_element(b"range/comm", self.comm)
        append_bit_commitments(transcript, b"range/lower", self.lower)
        append_bit_commitments(transcript, b"range/upper", self.upper)
        self.sp.challenge_contribution(transcript, [params.g, params.h], self.comm,
                                       label=b"range/comm")

    def verify(self, group: PairingGroup, min_value: int, max_value: int, challenge: ZR,
               params: PedersenCommitmentKey) -> bool:
        n = bit_count(min_value, max_value)
        if len(self.lower) != n or len(self.upper) != n:
            logger.debug("Bit range proof rejected: expected %d bits", n)
            return False
        if not self.sp.verify(group, [params.g, params.h], self.comm, challenge):
            return False
        lower_off, upper_off = _offsets(group, min_value, max_value)
        weights = powers_of_two(group, n)
        for proofs, offset in ((self.lower, lower_off), (self.upper, upper_off)):
            if not all(p.verify(group, params, challenge) for p in proofs):
                return False
            if multiexp(group, [p.B for p in proofs], weights) != self.comm * (params.g ** offset):
                logger.debug("Bit range proof rejected: bit commitments do not recombine")
                return False
        return True

    def get_resp_for_value(self) -> ZR:
        return self.sp.response.get_response(0)

    def serialize(self, writer: ByteWriter):
        writer.write_element(self.comm)
        for proofs in (self.lower, self.upper):
            writer.write_varint(len(proofs))
            for p in proofs:
                p.serialize(writer)
        self.sp.serialize(writer)

    @classmethod
    def deserialize(cls, reader: ByteReader) -> 'BitRangeProof':
        comm = reader.read_element()
        halves = []
        for _ in range(2):
            count = reader.read_varint()
            if count > 64:
                raise InvalidData(f"Bit range proof with {count} bits")
            halves.append([BitProof.deserialize(reader) for _ in range(count)])
        sp = SchnorrProof.deserialize(reader)
        if len(sp.response) != 2:
            raise InvalidData("Commitment opening must carry 2 responses")
        return cls(comm, halves[0], halves[1], sp)
