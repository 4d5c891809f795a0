"""Sub-protocol for verifiable encryption of a hidden value."""

from ..backends.elgamal import VerifiableEncryptionProtocol
from ..statement import VerifiableEncryption
from ..witness import VerifiableEncryptionWitness
from .base import SubProtocol, single_blinding


class VerifiableEncryptionSubProtocol(SubProtocol):
    STATEMENT = VerifiableEncryption
    WITNESS = VerifiableEncryptionWitness

    def _init_protocol(self, witness, setup_params, blindings, rng):
        return VerifiableEncryptionProtocol(
            self.group, rng, witness.message, self.statement.get_params(setup_params, self.id),
            self.statement.get_encryption_key(setup_params, self.id),
            single_blinding(witness.message, blindings, self.group, rng),
        )

    @classmethod
    def proof_challenge_contribution(cls, payload, statement, setup_params, index, group, transcript):
        payload.challenge_contribution(transcript, group, statement.get_params(setup_params, index),
                                       statement.get_encryption_key(setup_params, index))

    @classmethod
    def verify_proof_contribution(cls, payload, statement, setup_params, index, group, challenge):
        return payload.verify(group, challenge, statement.get_params(setup_params, index),
                              statement.get_encryption_key(setup_params, index))

    @classmethod
    def response_for_slot(cls, payload, statement, setup_params, index, slot):
        return payload.get_resp_for_message()
