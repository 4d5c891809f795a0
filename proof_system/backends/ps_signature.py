"""
Pointcheval-Sanders Signatures
==============================

PS signatures (Pointcheval and Sanders, 2016) over L messages and the proof
of knowledge of a signature with selective disclosure.

Keys:
-----
    params: g ∈ G1, g̃ ∈ G2 (hashed from a label)
    sk = (x, y_1, ..., y_L),  pk = (X̃ = g̃^x, Ỹ_i = g̃^{y_i})

Signature:
----------
    σ1 = g^u for random u,  σ2 = σ1^{x + Σ y_i m_i}
    valid iff σ1 ≠ 1 and e(σ1, X̃ · ∏ Ỹ_i^{m_i}) = e(σ2, g̃)

Proof of knowledge:
-------------------
    r, t ← Z_p;  σ1' = σ1^r,  σ2' = (σ2 · σ1^t)^r
    Y  = e(σ2', g̃) / e(σ1', X̃ · ∏_{i∈D} Ỹ_i^{m_i})
       = e(σ1', g̃^t · ∏_{i∉D} Ỹ_i^{m_i})
    T  = e(σ1', g̃^{k_t} · ∏_{i∉D} Ỹ_i^{k_i})
    check  e(σ1', g̃^{z_t} · ∏_{i∉D} Ỹ_i^{z_i}) == T · Y^c

The Schnorr relation lives in GT but costs one pairing per side since all
bases share the G1 argument σ1'.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Tuple

from charm.toolbox.pairinggroup import PairingGroup, ZR, G1, G2, GT, pair

from ..errors import InvalidData, ProofSystemError
from ..groups import hash_to_generators
from ..serialization import ByteReader, ByteWriter
from ..transcript import Transcript
from ..utils import gt_div, is_identity, multiexp, random_scalar
from .schnorr import SchnorrResponse

logger = logging.getLogger(__name__)


@dataclass
class PSSignatureParams:
    g: G1
    g_tilde: G2

    @classmethod
    def generate_using_label(cls, group: PairingGroup, label: bytes) -> 'PSSignatureParams':
        g = hash_to_generators(group, b"PS|" + label, 1, G1)[0]
        g_tilde = hash_to_generators(group, b"PS|" + label, 1, G2)[0]
        return cls(g, g_tilde)

    def append_to_transcript(self, transcript: Transcript):
        transcript.append_element(b"ps/params/g", self.g)
        transcript.append_element(b"ps/params/g~", self.g_tilde, G2)


@dataclass
class PSPublicKey:
    X_tilde: G2
    Y_tilde: List[G2]

    def supported_message_count(self) -> int:
        return len(self.Y_tilde)

    def append_to_transcript(self, transcript: Transcript):
        transcript.append_element(b"ps/pk/X~", self.X_tilde, G2)
        transcript.append_elements(b"ps/pk/Y~", self.Y_tilde, G2)


@dataclass
class PSSecretKey:
    x: ZR
    y: List[ZR]


class PSKeypair:
    def __init__(self, secret_key: PSSecretKey, public_key: PSPublicKey):
        self.secret_key = secret_key
        self.public_key = public_key

    @classmethod
    def generate(cls, group: PairingGroup, params: PSSignatureParams, message_count: int,
                 rng) -> 'PSKeypair':
        if message_count < 1:
            raise ValueError("PS keys need at least one message")
        x = random_scalar(group, rng)
        y = [random_scalar(group, rng) for _ in range(message_count)]
        pk = PSPublicKey(params.g_tilde ** x, [params.g_tilde ** y_i for y_i in y])
        return cls(PSSecretKey(x, y), pk)


@dataclass
class PSSignature:
    sigma_1: G1
    sigma_2: G1

    @classmethod
    def new(cls, group: PairingGroup, messages: List[ZR], secret_key: PSSecretKey,
            params: PSSignatureParams, rng) -> 'PSSignature':
        if len(messages) != len(secret_key.y):
            raise ValueError(f"Key supports {len(secret_key.y)} messages, got {len(messages)}")
        sigma_1 = params.g ** random_scalar(group, rng)
        exp = secret_key.x
        for y_i, m_i in zip(secret_key.y, messages):
            exp = exp + y_i * m_i
        return cls(sigma_1, sigma_1 ** exp)

    def verify(self, group: PairingGroup, messages: List[ZR], public_key: PSPublicKey,
               params: PSSignatureParams) -> bool:
        if len(messages) != public_key.supported_message_count() or is_identity(group, self.sigma_1):
            return False
        rhs_g2 = public_key.X_tilde * multiexp(group, public_key.Y_tilde, messages, G2)
        return pair(self.sigma_1, rhs_g2) == pair(self.sigma_2, params.g_tilde)


def _hidden_bases(params: PSSignatureParams, public_key: PSPublicKey,
                  hidden_indices: List[int]) -> List[G2]:
    return [params.g_tilde] + [public_key.Y_tilde[i] for i in hidden_indices]


def _public_target(group: PairingGroup, sigma_1: G1, sigma_2: G1, revealed: Dict[int, ZR],
                   public_key: PSPublicKey, params: PSSignatureParams) -> GT:
    rev_idx = sorted(revealed)
    rev_g2 = public_key.X_tilde * multiexp(
        group, [public_key.Y_tilde[i] for i in rev_idx], [revealed[i] for i in rev_idx], G2
    )
    return gt_div(pair(sigma_2, params.g_tilde), pair(sigma_1, rev_g2), group)


class PSPoKProtocol:
    """
    Prover side of the PS proof of knowledge.

    Parameters
    ----------
    hidden_blindings : List[Tuple[int, ZR]]
        (index, blinding) for every hidden message in increasing index order
    """

    def __init__(self, group: PairingGroup, rng, signature: PSSignature,
                 params: PSSignatureParams, public_key: PSPublicKey, messages: List[ZR],
                 revealed: Dict[int, ZR], hidden_blindings: List[Tuple[int, ZR]]):
        self.group = group
        hidden_indices = [i for i, _ in hidden_blindings]
        r = random_scalar(group, rng)
        t = random_scalar(group, rng)
        self.sigma_1 = signature.sigma_1 ** r
        self.sigma_2 = (signature.sigma_2 * (signature.sigma_1 ** t)) ** r

        self._witnesses = [t] + [messages[i] for i in hidden_indices]
        self._blindings = [random_scalar(group, rng)] + [k for _, k in hidden_blindings]
        bases = _hidden_bases(params, public_key, hidden_indices)
        self.T = pair(self.sigma_1, multiexp(group, bases, self._blindings, G2))

    def challenge_contribution(self, transcript: Transcript):
        transcript.append_element(b"ps/sigma1'", self.sigma_1)
        transcript.append_element(b"ps/sigma2'", self.sigma_2)
        transcript.append_element(b"ps/T", self.T, GT)

    def gen_proof(self, challenge: ZR) -> 'PSPoKProof':
        responses = [k + challenge * w for k, w in zip(self._blindings, self._witnesses)]
        return PSPoKProof(self.sigma_1, self.sigma_2, self.T, SchnorrResponse(responses))


@dataclass
class PSPoKProof:
    sigma_1: G1
    sigma_2: G1
    T: GT
    response: SchnorrResponse

    def challenge_contribution(self, transcript: Transcript):
        transcript.append_element(b"ps/sigma1'", self.sigma_1)
        transcript.append_element(b"ps/sigma2'", self.sigma_2)
        transcript.append_element(b"ps/T", self.T, GT)

    def verify(self, group: PairingGroup, revealed: Dict[int, ZR], challenge: ZR,
               public_key: PSPublicKey, params: PSSignatureParams) -> bool:
        if is_identity(group, self.sigma_1):
            logger.debug("PS proof rejected: sigma1' is the identity")
            return False
        hidden = [i for i in range(public_key.supported_message_count()) if i not in revealed]
        bases = _hidden_bases(params, public_key, hidden)
        if len(bases) != len(self.response):
            return False
        y = _public_target(group, self.sigma_1, self.sigma_2, revealed, public_key, params)
        lhs = pair(self.sigma_1, multiexp(group, bases, self.response.responses, G2))
        return lhs == self.T * (y ** challenge)

    def get_resp_for_message(self, msg_idx: int, revealed_msg_ids) -> ZR:
        """Responses are [t, hidden messages in index order]."""
        if msg_idx in revealed_msg_ids:
            raise ProofSystemError(f"Message {msg_idx} is revealed and has no response")
        pos = sum(1 for i in range(msg_idx) if i not in revealed_msg_ids)
        return self.response.get_response(1 + pos)

    def serialize(self, writer: ByteWriter):
        writer.write_element(self.sigma_1)
        writer.write_element(self.sigma_2)
        writer.write_element(self.T, GT)
        writer.write_scalars(self.response.responses)

    @classmethod
    def deserialize(cls, reader: ByteReader) -> 'PSPoKProof':
        sigma_1 = reader.read_element()
        sigma_2 = reader.read_element()
        T = reader.read_element(GT)
        responses = reader.read_scalars()
        if not responses:
            raise InvalidData("PS proof without responses")
        return cls(sigma_1, sigma_2, T, SchnorrResponse(responses))
