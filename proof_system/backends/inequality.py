"""
Inequality with a Public Value
==============================

Proves m ≠ v for a public v and the value m committed as comm = g^m · h^r.

With C' = comm · g^{-v} = g^{m-v} · h^r and a = (m - v)^{-1}, b = -r·a:

    C'^a · h^b = g · h^{r·a} · h^{-r·a} = g

so knowledge of (a, b) with g = C'^a · h^b shows m - v is invertible, i.e.
m ≠ v. A second Schnorr proof opens comm with bases (g, h) and links m
(slot 0) to other statements.
"""

from dataclasses import dataclass

from charm.toolbox.pairinggroup import PairingGroup, ZR, G1

from ..errors import InvalidData, InvalidWitness
from ..serialization import ByteReader, ByteWriter
from ..transcript import Transcript
from ..utils import group_inv, inv, neg, random_scalar
from .schnorr import PedersenCommitmentKey, SchnorrProof, SchnorrProtocol


class InequalityProtocol:
    def __init__(self, group: PairingGroup, rng, message: ZR, inequal_to: ZR,
                 comm_key: PedersenCommitmentKey, message_blinding: ZR):
        if message == inequal_to:
            raise InvalidWitness("Message is equal to the public value")
        r = random_scalar(group, rng)
        self.comm = (comm_key.g ** message) * (comm_key.h ** r)
        self._c_prime = self.comm * group_inv(group, comm_key.g ** inequal_to)
        a = inv(group, message - inequal_to)
        b = neg(group, r * a)
        self.sc_comm = SchnorrProtocol(group, [comm_key.g, comm_key.h], [message, r],
                                       [message_blinding, random_scalar(group, rng)])
        self.sc_ineq = SchnorrProtocol(group, [self._c_prime, comm_key.h], [a, b],
                                       [random_scalar(group, rng), random_scalar(group, rng)])
        self._g = comm_key.g

    def challenge_contribution(self, transcript: Transcript):
        transcript.append_element(b"ineq/comm", self.comm)
        self.sc_comm.challenge_contribution(transcript, self.comm, b"ineq/comm")
        self.sc_ineq.challenge_contribution(transcript, self._g, b"ineq/inv")

    def gen_proof(self, challenge: ZR) -> 'InequalityProof':
        return InequalityProof(self.comm, self.sc_comm.gen_proof(challenge),
                               self.sc_ineq.gen_proof(challenge))


@dataclass
class InequalityProof:
    comm: G1
    sc_comm: SchnorrProof
    sc_ineq: SchnorrProof

    def _ineq_bases(self, group: PairingGroup, inequal_to: ZR, comm_key: PedersenCommitmentKey):
        return [self.comm * group_inv(group, comm_key.g ** inequal_to), comm_key.h]

    def challenge_contribution(self, transcript: Transcript, group: PairingGroup,
                               inequal_to: ZR, comm_key: PedersenCommitmentKey):
        transcript.append_element(b"ineq/comm", self.comm)
        self.sc_comm.challenge_contribution(transcript, [comm_key.g, comm_key.h], self.comm,
                                            label=b"ineq/comm")
        self.sc_ineq.challenge_contribution(transcript, self._ineq_bases(group, inequal_to, comm_key),
                                            comm_key.g, label=b"ineq/inv")

    def verify(self, group: PairingGroup, inequal_to: ZR, challenge: ZR,
               comm_key: PedersenCommitmentKey) -> bool:
        return (self.sc_comm.verify(group, [comm_key.g, comm_key.h], self.comm, challenge)
                and self.sc_ineq.verify(group, self._ineq_bases(group, inequal_to, comm_key),
                                        comm_key.g, challenge))

    def get_resp_for_message(self) -> ZR:
        return self.sc_comm.response.get_response(0)

    def serialize(self, writer: ByteWriter):
        writer.write_element(self.comm)
        self.sc_comm.serialize(writer)
        self.sc_ineq.serialize(writer)

    @classmethod
    def deserialize(cls, reader: ByteReader) -> 'InequalityProof':
        comm = reader.read_element()
        sc_comm = SchnorrProof.deserialize(reader)
        sc_ineq = SchnorrProof.deserialize(reader)
        if len(sc_comm.response) != 2 or len(sc_ineq.response) != 2:
            raise InvalidData("Inequality proof must carry 2 + 2 responses")
        return cls(comm, sc_comm, sc_ineq)
