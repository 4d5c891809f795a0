"""
Schnorr Proofs of Knowledge
===========================

Proof of knowledge of a vector of discrete logs (w_1, ..., w_n) with

    Y = ∏_{i=1}^{n} b_i^{w_i}

for public bases b_i and public Y in G1, G2 or GT. This is the building
block every other backend links its secrets through.

Protocol (made non-interactive by the shared transcript):
---------------------------------------------------------
1. Prover picks blindings k_i and sends t = ∏ b_i^{k_i}
2. Challenge c
3. Prover sends z_i = k_i + c · w_i
4. Verifier checks ∏ b_i^{z_i} == t · Y^c

Because z_i depends only on (k_i, c, w_i), two Schnorr proofs sharing the
same blinding and witness under the same challenge have identical
responses. Equality of witnesses across statements is checked that way.
"""

from dataclasses import dataclass
from typing import List

from charm.toolbox.pairinggroup import PairingGroup, ZR, G1

from ..errors import InvalidData, ProofSystemError
from ..groups import hash_to_generators
from ..serialization import ByteReader, ByteWriter
from ..transcript import Transcript
from ..utils import multiexp


class SchnorrProtocol:
    """
    Prover state for one Schnorr relation.

    Parameters
    ----------
    group : PairingGroup
        The pairing group
    bases : List
        The public bases b_i
    witnesses : List[ZR]
        The secrets w_i
    blindings : List[ZR]
        One blinding k_i per witness, already merged with any shared blindings
    kind : int
        Group the bases live in (G1, G2 or GT)
    """

    def __init__(self, group: PairingGroup, bases: List, witnesses: List[ZR],
                 blindings: List[ZR], kind=G1):
        if not (len(bases) == len(witnesses) == len(blindings)):
            raise ValueError(
                f"bases, witnesses and blindings must have same length: "
                f"{len(bases)}, {len(witnesses)}, {len(blindings)}"
            )
        self.group = group
        self.kind = kind
        self.bases = bases
        self._witnesses = witnesses
        self._blindings = blindings
        self.t = multiexp(group, bases, blindings, kind)

    def challenge_contribution(self, transcript: Transcript, y, label: bytes = b"schnorr"):
        transcript.append_elements(label + b"/bases", self.bases, self.kind)
        transcript.append_element(label + b"/y", y, self.kind)
        transcript.append_element(label + b"/t", self.t, self.kind)

    def gen_proof(self, challenge: ZR) -> 'SchnorrProof':
        responses = [k + challenge * w for k, w in zip(self._blindings, self._witnesses)]
        return SchnorrProof(self.t, SchnorrResponse(responses))


@dataclass
class SchnorrResponse:
    """The responses z_1, ..., z_n."""

    responses: List[ZR]

    def get_response(self, idx: int) -> ZR:
        if not 0 <= idx < len(self.responses):
            raise ProofSystemError(
                f"Response index {idx} out of range, proof has {len(self.responses)} responses"
            )
        return self.responses[idx]

    def __len__(self):
        return len(self.responses)


@dataclass
class SchnorrProof:
    """
    Commitment t plus responses for one relation.

    The same payload is used as the Pedersen commitment opening proof of
    other statements (``PedersenCommitmentProof``).
    """

    t: object
    response: SchnorrResponse

    def challenge_contribution(self, transcript: Transcript, bases: List, y,
                               kind=G1, label: bytes = b"schnorr"):
        """Write exactly the bytes ``SchnorrProtocol.challenge_contribution`` writes."""
        transcript.append_elements(label + b"/bases", bases, kind)
        transcript.append_element(label + b"/y", y, kind)
        transcript.append_element(label + b"/t", self.t, kind)

    def verify(self, group: PairingGroup, bases: List, y, challenge: ZR, kind=G1) -> bool:
        """
        Check ∏ b_i^{z_i} == t · Y^c.

        Returns
        -------
        bool
            False also when the number of responses does not match the bases
        """
        if len(bases) != len(self.response):
            return False
        lhs = multiexp(group, bases, self.response.responses, kind)
        return lhs == self.t * (y ** challenge)

    def serialize(self, writer: ByteWriter, kind=G1):
        writer.write_element(self.t, kind)
        writer.write_scalars(self.response.responses)

    @classmethod
    def deserialize(cls, reader: ByteReader, kind=G1) -> 'SchnorrProof':
        t = reader.read_element(kind)
        responses = reader.read_scalars()
        if not responses:
            raise InvalidData("Schnorr proof without responses")
        return cls(t, SchnorrResponse(responses))


@dataclass
class PedersenCommitmentKey:
    """
    Commitment bases hashed from a label.

    Two-base keys (g, h) back the range and inequality proofs; longer keys
    back multi-message Pedersen commitment statements.
    """

    bases: List[G1]

    @classmethod
    def generate_using_label(cls, group: PairingGroup, label: bytes,
                             count: int = 2) -> 'PedersenCommitmentKey':
        if count < 1:
            raise ValueError("Commitment key needs at least one base")
        return cls(hash_to_generators(group, b"PEDERSEN|" + label, count, G1))

    @property
    def g(self) -> G1:
        return self.bases[0]

    @property
    def h(self) -> G1:
        if len(self.bases) < 2:
            raise ValueError("Commitment key has no second base")
        return self.bases[1]

    def commit(self, group: PairingGroup, messages: List[ZR]) -> G1:
        return multiexp(group, self.bases, messages)

    def append_to_transcript(self, transcript: Transcript):
        transcript.append_elements(b"pedersen/bases", self.bases)


PedersenCommitmentProof = SchnorrProof
