"""Sub-protocols over Pedersen commitments: opening and public inequality."""

from ..backends.inequality import InequalityProtocol
from ..backends.schnorr import SchnorrProtocol
from ..errors import InvalidWitness
from ..statement import PedersenCommitment, PublicInequality
from ..witness import PedersenCommitmentWitness, PublicInequalityWitness
from .base import SubProtocol, merge_indexed_messages_with_blindings, single_blinding

PEDERSEN_LABEL = b"pedersen"


class PedersenCommitmentSubProtocol(SubProtocol):
    """Knowledge of the opening of a multi-base Pedersen commitment."""

    STATEMENT = PedersenCommitment
    WITNESS = PedersenCommitmentWitness

    def _init_protocol(self, witness, setup_params, blindings, rng):
        key = self.statement.get_comm_key(setup_params, self.id)
        if len(witness.messages) != len(key.bases):
            raise InvalidWitness(
                f"Witness {self.id} has {len(witness.messages)} messages for "
                f"{len(key.bases)} commitment bases"
            )
        merged = merge_indexed_messages_with_blindings(
            enumerate(witness.messages), blindings, self.group, rng
        )
        return _PedersenProver(SchnorrProtocol(self.group, key.bases, list(witness.messages),
                                               [k for _, _, k in merged]),
                               self.statement.commitment)

    @classmethod
    def proof_challenge_contribution(cls, payload, statement, setup_params, index, group, transcript):
        payload.challenge_contribution(transcript, statement.get_comm_key(setup_params, index).bases,
                                       statement.commitment, label=PEDERSEN_LABEL)

    @classmethod
    def verify_proof_contribution(cls, payload, statement, setup_params, index, group, challenge):
        return payload.verify(group, statement.get_comm_key(setup_params, index).bases,
                              statement.commitment, challenge)

    @classmethod
    def response_for_slot(cls, payload, statement, setup_params, index, slot):
        return payload.response.get_response(slot)


class _PedersenProver:
    """Binds the commitment to the Schnorr prover so both halves write the same labels."""

    def __init__(self, sc: SchnorrProtocol, commitment):
        self.sc = sc
        self.commitment = commitment

    def challenge_contribution(self, transcript):
        self.sc.challenge_contribution(transcript, self.commitment, PEDERSEN_LABEL)

    def gen_proof(self, challenge):
        return self.sc.gen_proof(challenge)


class PublicInequalitySubProtocol(SubProtocol):
    STATEMENT = PublicInequality
    WITNESS = PublicInequalityWitness

    def _init_protocol(self, witness, setup_params, blindings, rng):
        return InequalityProtocol(
            self.group, rng, witness.message, self.statement.inequal_to,
            self.statement.get_comm_key(setup_params, self.id),
            single_blinding(witness.message, blindings, self.group, rng),
        )

    @classmethod
    def proof_challenge_contribution(cls, payload, statement, setup_params, index, group, transcript):
        payload.challenge_contribution(transcript, group, statement.inequal_to,
                                       statement.get_comm_key(setup_params, index))

    @classmethod
    def verify_proof_contribution(cls, payload, statement, setup_params, index, group, challenge):
        return payload.verify(group, statement.inequal_to, challenge,
                              statement.get_comm_key(setup_params, index))

    @classmethod
    def response_for_slot(cls, payload, statement, setup_params, index, slot):
        return payload.get_resp_for_message()
