"""
Verifiable Encryption (Chunked ElGamal)
=======================================

Encrypts a witnessed scalar m under an ElGamal public key in G1 so that a
holder of the secret key can recover m, and proves that the ciphertext
encrypts the same m the other statements talk about.

Encryption:
-----------
    m = Σ m_i · w_i,  w_i = 2^{b·i},  0 ≤ m_i < 2^b,  b = chunk_bit_size ∈ {4, 8, 16}
    c1_i = g^{k_i},  c2_i = g^{m_i} · pk^{k_i}

Proof, per chunk i:
-------------------
    Schnorr on c1_i with base g, witness k_i
    Schnorr on c2_i with bases (g, pk), witnesses (m_i, k_i), same blinding for k_i
    c2_i = ∏_j B_j^{2^j} with B_j = g^{β_j} · pk^{r_j} and an OR proof β_j ∈ {0, 1}

The chunk blindings μ_i of m_i satisfy Σ μ_i w_i = μ, the blinding of m, so
the response for m is z = Σ z_i w_i = μ + c·m (slot 0). The verifier checks
that sum against the transmitted z.

Every chunk is shown to be below 2^b, so a ciphertext that verifies always
decrypts.

Decryption:
-----------
    g^{m_i} = c2_i / c1_i^{sk}, m_i found in a table of g^0, ..., g^{2^b - 1}
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from charm.toolbox.pairinggroup import PairingGroup, ZR, G1

from ..config import config
from ..errors import DecryptionError, InvalidData, InvalidStatement
from ..groups import hash_to_generators
from ..serialization import ByteReader, ByteWriter, element_to_bytes
from ..transcript import Transcript
from ..utils import group_inv, multiexp, random_scalar, scalar
from .bit_range import (
    BitProof,
    BitProver,
    append_bit_commitments,
    bits_of,
    powers_of_two,
    split_blinding,
)
from .schnorr import PedersenCommitmentKey, SchnorrProof, SchnorrProtocol

logger = logging.getLogger(__name__)

SUPPORTED_CHUNK_BIT_SIZES = (4, 8, 16)


@dataclass
class ElgamalParams:
    g: G1
    chunk_bit_size: int
    _dlog_table: Optional[Dict[bytes, int]] = field(default=None, init=False, repr=False,
                                                    compare=False)

    def __post_init__(self):
        if self.chunk_bit_size not in SUPPORTED_CHUNK_BIT_SIZES:
            raise InvalidStatement(
                f"Chunk bit size must be one of {SUPPORTED_CHUNK_BIT_SIZES}, got {self.chunk_bit_size}"
            )

    @classmethod
    def generate_using_label(cls, group: PairingGroup, label: bytes,
                             chunk_bit_size: Optional[int] = None) -> 'ElgamalParams':
        """``chunk_bit_size`` defaults to ``config.chunk_bit_size``."""
        if chunk_bit_size is None:
            chunk_bit_size = config.chunk_bit_size
        return cls(hash_to_generators(group, b"VE|" + label, 1, G1)[0], chunk_bit_size)

    def chunk_count(self, group: PairingGroup) -> int:
        bits = int(group.order()).bit_length()
        return -(-bits // self.chunk_bit_size)

    def chunk_weights(self, group: PairingGroup) -> List[ZR]:
        return [scalar(group, 1 << (self.chunk_bit_size * i)) for i in range(self.chunk_count(group))]

    def dlog_table(self, group: PairingGroup) -> Dict[bytes, int]:
        """Lookup of g^j -> j for 0 <= j < 2^chunk_bit_size, built on first use."""
        if self._dlog_table is None:
            table = {}
            cur = group.init(G1, 1)
            for j in range(1 << self.chunk_bit_size):
                table[element_to_bytes(group, cur)] = j
                cur = cur * self.g
            self._dlog_table = table
        return self._dlog_table

    def append_to_transcript(self, transcript: Transcript):
        transcript.append_element(b"ve/params/g", self.g)
        transcript.append_u64(b"ve/params/chunk_bit_size", self.chunk_bit_size)


@dataclass
class ElgamalPublicKey:
    pk: G1

    def append_to_transcript(self, transcript: Transcript):
        transcript.append_element(b"ve/pk", self.pk)


class ElgamalKeypair:
    def __init__(self, secret_key: ZR, public_key: ElgamalPublicKey):
        self.secret_key = secret_key
        self.public_key = public_key

    @classmethod
    def generate(cls, group: PairingGroup, params: ElgamalParams, rng) -> 'ElgamalKeypair':
        sk = random_scalar(group, rng)
        return cls(sk, ElgamalPublicKey(params.g ** sk))


@dataclass
class ChunkedCiphertext:
    c1: List[G1]
    c2: List[G1]


def decompose(group: PairingGroup, m: ZR, params: ElgamalParams) -> List[int]:
    """Little-endian chunks of m, each below 2^chunk_bit_size."""
    v = int(m)
    mask = (1 << params.chunk_bit_size) - 1
    return [(v >> (params.chunk_bit_size * i)) & mask for i in range(params.chunk_count(group))]


def decrypt(group: PairingGroup, ciphertext: ChunkedCiphertext, secret_key: ZR,
            params: ElgamalParams) -> ZR:
    """
    Recover the encrypted scalar.

    Raises
    ------
    DecryptionError
        If a chunk does not decrypt to a value below 2^chunk_bit_size
    """
    table = params.dlog_table(group)
    value = 0
    for i, (c1, c2) in enumerate(zip(ciphertext.c1, ciphertext.c2)):
        g_mi = c2 * group_inv(group, c1 ** secret_key)
        m_i = table.get(element_to_bytes(group, g_mi))
        if m_i is None:
            raise DecryptionError(f"Chunk {i} is not in range [0, 2^{params.chunk_bit_size})")
        value += m_i << (params.chunk_bit_size * i)
    # the chunks cover a few bits more than the order
    return group.init(ZR, value % int(group.order()))


def _encryption_key(params: ElgamalParams, public_key: ElgamalPublicKey) -> PedersenCommitmentKey:
    """Each c2_i is a Pedersen commitment to m_i under (g, pk)."""
    return PedersenCommitmentKey([params.g, public_key.pk])


class _ChunkProver:
    def __init__(self, group: PairingGroup, rng, key: PedersenCommitmentKey, bit_size: int,
                 m_i: int, k_i: ZR, m_blinding: ZR):
        k_blinding = random_scalar(group, rng)
        self.sc_c1 = SchnorrProtocol(group, [key.g], [k_i], [k_blinding])
        self.sc_c2 = SchnorrProtocol(group, [key.g, key.h], [scalar(group, m_i), k_i],
                                     [m_blinding, k_blinding])
        self.bits = [BitProver(group, rng, key, bit, r_j)
                     for bit, r_j in zip(bits_of(m_i, bit_size),
                                         split_blinding(group, rng, k_i, powers_of_two(group, bit_size)))]

    def challenge_contribution(self, transcript: Transcript, c1: G1, c2: G1):
        self.sc_c1.challenge_contribution(transcript, c1, b"ve/chunk/c1")
        self.sc_c2.challenge_contribution(transcript, c2, b"ve/chunk/c2")
        append_bit_commitments(transcript, b"ve/chunk/bits", self.bits)

    def gen_proof(self, challenge: ZR) -> 'ChunkProof':
        return ChunkProof(self.sc_c1.gen_proof(challenge), self.sc_c2.gen_proof(challenge),
                          [p.respond(challenge) for p in self.bits])


class VerifiableEncryptionProtocol:
    """
    Encrypt ``message`` and prepare the proof.

    Parameters
    ----------
    message_blinding : ZR
        Blinding for m, shared when m is linked to other statements
    """

    def __init__(self, group: PairingGroup, rng, message: ZR, params: ElgamalParams,
                 public_key: ElgamalPublicKey, message_blinding: ZR):
        self.group = group
        chunks = decompose(group, message, params)
        ks = [random_scalar(group, rng) for _ in chunks]
        self.ciphertext = ChunkedCiphertext(
            [params.g ** k for k in ks],
            [(params.g ** scalar(group, m_i)) * (public_key.pk ** k) for m_i, k in zip(chunks, ks)],
        )
        key = _encryption_key(params, public_key)
        m_blindings = split_blinding(group, rng, message_blinding, params.chunk_weights(group))
        self.chunks = [_ChunkProver(group, rng, key, params.chunk_bit_size, m_i, k_i, mu_i)
                       for m_i, k_i, mu_i in zip(chunks, ks, m_blindings)]
        self.message = message
        self.message_blinding = message_blinding

    def challenge_contribution(self, transcript: Transcript):
        transcript.append_elements(b"ve/c1", self.ciphertext.c1)
        transcript.append_elements(b"ve/c2", self.ciphertext.c2)
        for chunk, c1, c2 in zip(self.chunks, self.ciphertext.c1, self.ciphertext.c2):
            chunk.challenge_contribution(transcript, c1, c2)

    def gen_proof(self, challenge: ZR) -> 'VerifiableEncryptionProof':
        return VerifiableEncryptionProof(
            self.ciphertext,
            [chunk.gen_proof(challenge) for chunk in self.chunks],
            self.message_blinding + challenge * self.message,
        )


@dataclass
class ChunkProof:
    """Opening of (c1_i, c2_i) with a shared k_i, plus the bits of m_i."""

    sc_c1: SchnorrProof
    sc_c2: SchnorrProof
    bits: List[BitProof]

    def serialize(self, writer: ByteWriter):
        self.sc_c1.serialize(writer)
        self.sc_c2.serialize(writer)
        writer.write_varint(len(self.bits))
        for p in self.bits:
            p.serialize(writer)

    @classmethod
    def deserialize(cls, reader: ByteReader) -> 'ChunkProof':
        sc_c1 = SchnorrProof.deserialize(reader)
        sc_c2 = SchnorrProof.deserialize(reader)
        if len(sc_c1.response) != 1 or len(sc_c2.response) != 2:
            raise InvalidData("Chunk proof has the wrong number of responses")
        bits = [BitProof.deserialize(reader) for _ in range(reader.read_count())]
        return cls(sc_c1, sc_c2, bits)


@dataclass
class VerifiableEncryptionProof:
    ciphertext: ChunkedCiphertext
    chunks: List[ChunkProof]
    message_response: ZR

    def _check_shape(self, group: PairingGroup, params: ElgamalParams):
        n = params.chunk_count(group)
        if not (len(self.ciphertext.c1) == len(self.ciphertext.c2) == len(self.chunks) == n):
            raise ValueError(f"Ciphertext must have {n} chunks")
        if any(len(chunk.bits) != params.chunk_bit_size for chunk in self.chunks):
            raise ValueError(f"Every chunk must carry {params.chunk_bit_size} bit proofs")

    def challenge_contribution(self, transcript: Transcript, group: PairingGroup,
                               params: ElgamalParams, public_key: ElgamalPublicKey):
        self._check_shape(group, params)
        key = _encryption_key(params, public_key)
        transcript.append_elements(b"ve/c1", self.ciphertext.c1)
        transcript.append_elements(b"ve/c2", self.ciphertext.c2)
        for chunk, c1, c2 in zip(self.chunks, self.ciphertext.c1, self.ciphertext.c2):
            chunk.sc_c1.challenge_contribution(transcript, [key.g], c1, label=b"ve/chunk/c1")
            chunk.sc_c2.challenge_contribution(transcript, [key.g, key.h], c2, label=b"ve/chunk/c2")
            append_bit_commitments(transcript, b"ve/chunk/bits", chunk.bits)

    def verify(self, group: PairingGroup, challenge: ZR, params: ElgamalParams,
               public_key: ElgamalPublicKey) -> bool:
        try:
            self._check_shape(group, params)
        except ValueError as e:
            logger.debug("Verifiable encryption proof rejected: %s", e)
            return False
        key = _encryption_key(params, public_key)
        bit_weights = powers_of_two(group, params.chunk_bit_size)
        for i, (chunk, c1, c2) in enumerate(zip(self.chunks, self.ciphertext.c1, self.ciphertext.c2)):
            if chunk.sc_c2.response.get_response(1) != chunk.sc_c1.response.get_response(0):
                logger.debug("Verifiable encryption proof rejected: chunk %d randomness differs", i)
                return False
            if not (chunk.sc_c1.verify(group, [key.g], c1, challenge)
                    and chunk.sc_c2.verify(group, [key.g, key.h], c2, challenge)):
                logger.debug("Verifiable encryption proof rejected: chunk %d opening", i)
                return False
            if not all(p.verify(group, key, challenge) for p in chunk.bits):
                logger.debug("Verifiable encryption proof rejected: chunk %d bit proof", i)
                return False
            if multiexp(group, [p.B for p in chunk.bits], bit_weights) != c2:
                logger.debug("Verifiable encryption proof rejected: chunk %d exceeds %d bits",
                             i, params.chunk_bit_size)
                return False
        combined = scalar(group, 0)
        for chunk, w in zip(self.chunks, params.chunk_weights(group)):
            combined = combined + chunk.sc_c2.response.get_response(0) * w
        if combined != self.message_response:
            logger.debug("Verifiable encryption proof rejected: chunk responses do not recombine")
            return False
        return True

    def get_resp_for_message(self) -> ZR:
        return self.message_response

    def decrypt(self, group: PairingGroup, secret_key: ZR, params: ElgamalParams) -> ZR:
        return decrypt(group, self.ciphertext, secret_key, params)

    def serialize(self, writer: ByteWriter):
        writer.write_elements(self.ciphertext.c1)
        writer.write_elements(self.ciphertext.c2)
        writer.write_varint(len(self.chunks))
        for chunk in self.chunks:
            chunk.serialize(writer)
        writer.write_scalar(self.message_response)

    @classmethod
    def deserialize(cls, reader: ByteReader) -> 'VerifiableEncryptionProof':
        c1 = reader.read_elements()
        c2 = reader.read_elements()
        chunks = [ChunkProof.deserialize(reader) for _ in range(reader.read_count())]
        return cls(ChunkedCiphertext(c1, c2), chunks, reader.read_scalar())
