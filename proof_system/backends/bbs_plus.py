"""
BBS+ Signatures and Proof of Knowledge
======================================

BBS+ signatures over a vector of L messages with signature in G1 and public
key in G2, and the proof of knowledge of a signature with selective
disclosure from Camenisch, Drijvers and Lehmann (2016), section 4.5.

Setup:
------
    params: g1, h0, h_1, ..., h_L ∈ G1, g2 ∈ G2 (hashed from a label)
    secret key x ∈ Z_p, public key w = g2^x

Signature on (m_1, ..., m_L):
-----------------------------
    e, s ← Z_p
    b = g1 · h0^s · ∏ h_i^{m_i}
    A = b^{1/(x+e)}
    σ = (A, e, s),    valid iff e(A, w · g2^e) = e(b, g2)

Proof of knowledge (D = revealed indices):
------------------------------------------
    r1, r2 ← Z_p,  r3 = 1/r1
    A' = A^{r1},  Ā = A'^{-e} · b^{r1},  d = b^{r1} · h0^{-r2},  s' = s - r2·r3

    Relation 1:  Ā / d = A'^{-e} · h0^{r2}
    Relation 2:  g1 · ∏_{i∈D} h_i^{m_i} = d^{r3} · h0^{-s'} · ∏_{i∉D} (h_i^{-1})^{m_i}

    Verifier checks A' ≠ 1, e(A', w) = e(Ā, g2), and both Schnorr relations.

Hidden message i is a witness of relation 2 with base h_i^{-1}, so its
response is k_i + c·m_i and can be compared with other statements'
responses for the same value.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Tuple

from charm.toolbox.pairinggroup import PairingGroup, ZR, G1, G2, pair

from ..errors import InvalidData, ProofSystemError
from ..groups import hash_to_generators
from ..serialization import ByteReader, ByteWriter
from ..transcript import Transcript
from ..utils import group_inv, inv, is_identity, multiexp, neg, random_scalar
from .schnorr import SchnorrProof, SchnorrProtocol

logger = logging.getLogger(__name__)


@dataclass
class BBSPlusSignatureParams:
    """Public generators for signing L messages."""

    g1: G1
    h0: G1
    h: List[G1]
    g2: G2

    @classmethod
    def generate_using_label(cls, group: PairingGroup, label: bytes,
                             message_count: int) -> 'BBSPlusSignatureParams':
        if message_count < 1:
            raise ValueError("BBS+ params need at least one message")
        g1_elems = hash_to_generators(group, b"BBS+|" + label, message_count + 2, G1)
        g2 = hash_to_generators(group, b"BBS+|" + label, 1, G2)[0]
        return cls(g1_elems[0], g1_elems[1], g1_elems[2:], g2)

    def supported_message_count(self) -> int:
        return len(self.h)

    def b(self, group: PairingGroup, messages: List[ZR], s: ZR) -> G1:
        """b = g1 · h0^s · ∏ h_i^{m_i}"""
        return self.g1 * (self.h0 ** s) * multiexp(group, self.h, messages)

    def append_to_transcript(self, transcript: Transcript, label: bytes = b"bbs+/params"):
        transcript.append_element(label + b"/g1", self.g1)
        transcript.append_element(label + b"/h0", self.h0)
        transcript.append_elements(label + b"/h", self.h)
        transcript.append_element(label + b"/g2", self.g2, G2)


@dataclass
class BBSPlusPublicKey:
    w: G2

    def append_to_transcript(self, transcript: Transcript):
        transcript.append_element(b"bbs+/pk", self.w, G2)


class BBSPlusKeypair:
    """
    Signer key pair.

    Parameters
    ----------
    secret_key : ZR
        x
    public_key : BBSPlusPublicKey
        w = g2^x
    """

    def __init__(self, secret_key: ZR, public_key: BBSPlusPublicKey):
        self.secret_key = secret_key
        self.public_key = public_key

    @classmethod
    def generate(cls, group: PairingGroup, params: BBSPlusSignatureParams, rng) -> 'BBSPlusKeypair':
        x = random_scalar(group, rng)
        return cls(x, BBSPlusPublicKey(params.g2 ** x))


@dataclass
class BBSPlusSignature:
    A: G1
    e: ZR
    s: ZR

    @classmethod
    def new(cls, group: PairingGroup, messages: List[ZR], secret_key: ZR,
            params: BBSPlusSignatureParams, rng) -> 'BBSPlusSignature':
        if len(messages) != params.supported_message_count():
            raise ValueError(
                f"Params support {params.supported_message_count()} messages, got {len(messages)}"
            )
        e = random_scalar(group, rng)
        s = random_scalar(group, rng)
        b = params.b(group, messages, s)
        A = b ** inv(group, secret_key + e)
        return cls(A, e, s)

    def verify(self, group: PairingGroup, messages: List[ZR], public_key: BBSPlusPublicKey,
               params: BBSPlusSignatureParams) -> bool:
        if len(messages) != params.supported_message_count() or is_identity(group, self.A):
            return False
        b = params.b(group, messages, self.s)
        return pair(self.A, public_key.w * (params.g2 ** self.e)) == pair(b, params.g2)


def _relation_2(group: PairingGroup, d: G1, params: BBSPlusSignatureParams,
                revealed: Dict[int, ZR], hidden_indices: List[int]) -> Tuple[List[G1], G1]:
    """Bases and public value of relation 2."""
    bases = [d, params.h0] + [group_inv(group, params.h[i]) for i in hidden_indices]
    rev_idx = sorted(revealed)
    y = params.g1 * multiexp(group, [params.h[i] for i in rev_idx], [revealed[i] for i in rev_idx])
    return bases, y


class PoKOfSignatureProtocol:
    """
    Prover side of the proof of knowledge of a BBS+ signature.

    Parameters
    ----------
    group : PairingGroup
        The pairing group
    rng : random.Random-like
        Randomness source
    signature : BBSPlusSignature
        The signature being proven
    params : BBSPlusSignatureParams
        Signature params
    messages : List[ZR]
        All L signed messages
    revealed : Dict[int, ZR]
        Messages disclosed to the verifier
    hidden_blindings : List[Tuple[int, ZR]]
        (index, blinding) for every hidden message in increasing index order
    """

    def __init__(self, group: PairingGroup, rng, signature: BBSPlusSignature,
                 params: BBSPlusSignatureParams, messages: List[ZR],
                 revealed: Dict[int, ZR], hidden_blindings: List[Tuple[int, ZR]]):
        self.group = group
        self.params = params
        self.revealed = revealed
        self.hidden_indices = [i for i, _ in hidden_blindings]

        r1 = random_scalar(group, rng)
        r2 = random_scalar(group, rng)
        r3 = inv(group, r1)

        b = params.b(group, messages, signature.s)
        b_r1 = b ** r1
        self.A_prime = signature.A ** r1
        self.A_bar = (self.A_prime ** neg(group, signature.e)) * b_r1
        self.d = b_r1 * group_inv(group, params.h0 ** r2)
        s_prime = signature.s - r2 * r3

        self.sc1 = SchnorrProtocol(
            group, [self.A_prime, params.h0], [neg(group, signature.e), r2],
            [random_scalar(group, rng), random_scalar(group, rng)],
        )
        bases2, self._y2 = _relation_2(group, self.d, params, revealed, self.hidden_indices)
        self.sc2 = SchnorrProtocol(
            group, bases2,
            [r3, neg(group, s_prime)] + [messages[i] for i in self.hidden_indices],
            [random_scalar(group, rng), random_scalar(group, rng)] + [k for _, k in hidden_blindings],
        )
        self._y1 = self.A_bar * group_inv(group, self.d)

    def challenge_contribution(self, transcript: Transcript):
        transcript.append_element(b"bbs+/A'", self.A_prime)
        transcript.append_element(b"bbs+/Abar", self.A_bar)
        transcript.append_element(b"bbs+/d", self.d)
        self.sc1.challenge_contribution(transcript, self._y1, b"bbs+/sc1")
        self.sc2.challenge_contribution(transcript, self._y2, b"bbs+/sc2")

    def gen_proof(self, challenge: ZR) -> 'PoKOfSignatureG1Proof':
        return PoKOfSignatureG1Proof(
            self.A_prime, self.A_bar, self.d,
            self.sc1.gen_proof(challenge), self.sc2.gen_proof(challenge),
        )


@dataclass
class PoKOfSignatureG1Proof:
    A_prime: G1
    A_bar: G1
    d: G1
    sc_resp_1: SchnorrProof
    sc_resp_2: SchnorrProof

    def _relations(self, group: PairingGroup, revealed: Dict[int, ZR],
                   params: BBSPlusSignatureParams):
        hidden = [i for i in range(params.supported_message_count()) if i not in revealed]
        bases1 = [self.A_prime, params.h0]
        y1 = self.A_bar * group_inv(group, self.d)
        bases2, y2 = _relation_2(group, self.d, params, revealed, hidden)
        return bases1, y1, bases2, y2

    def challenge_contribution(self, transcript: Transcript, group: PairingGroup,
                               revealed: Dict[int, ZR], params: BBSPlusSignatureParams):
        bases1, y1, bases2, y2 = self._relations(group, revealed, params)
        transcript.append_element(b"bbs+/A'", self.A_prime)
        transcript.append_element(b"bbs+/Abar", self.A_bar)
        transcript.append_element(b"bbs+/d", self.d)
        self.sc_resp_1.challenge_contribution(transcript, bases1, y1, label=b"bbs+/sc1")
        self.sc_resp_2.challenge_contribution(transcript, bases2, y2, label=b"bbs+/sc2")

    def verify(self, group: PairingGroup, revealed: Dict[int, ZR], challenge: ZR,
               public_key: BBSPlusPublicKey, params: BBSPlusSignatureParams) -> bool:
        if is_identity(group, self.A_prime):
            logger.debug("BBS+ proof rejected: A' is the identity")
            return False
        if pair(self.A_prime, public_key.w) != pair(self.A_bar, params.g2):
            logger.debug("BBS+ proof rejected: pairing check failed")
            return False
        bases1, y1, bases2, y2 = self._relations(group, revealed, params)
        return (self.sc_resp_1.verify(group, bases1, y1, challenge)
                and self.sc_resp_2.verify(group, bases2, y2, challenge))

    def get_resp_for_message(self, msg_idx: int, revealed_msg_ids) -> ZR:
        """
        Response for hidden message ``msg_idx``.

        Responses of relation 2 are ordered [r3, -s', hidden messages in index
        order], so the message's position is 2 + the number of hidden indices
        below it.
        """
        if msg_idx in revealed_msg_ids:
            raise ProofSystemError(f"Message {msg_idx} is revealed and has no response")
        pos = sum(1 for i in range(msg_idx) if i not in revealed_msg_ids)
        return self.sc_resp_2.response.get_response(2 + pos)

    def serialize(self, writer: ByteWriter):
        writer.write_element(self.A_prime)
        writer.write_element(self.A_bar)
        writer.write_element(self.d)
        self.sc_resp_1.serialize(writer)
        self.sc_resp_2.serialize(writer)

    @classmethod
    def deserialize(cls, reader: ByteReader) -> 'PoKOfSignatureG1Proof':
        A_prime = reader.read_element()
        A_bar = reader.read_element()
        d = reader.read_element()
        sc1 = SchnorrProof.deserialize(reader)
        sc2 = SchnorrProof.deserialize(reader)
        if len(sc1.response) != 2 or len(sc2.response) < 2:
            raise InvalidData("BBS+ proof has the wrong number of Schnorr responses")
        return cls(A_prime, A_bar, d, sc1, sc2)
