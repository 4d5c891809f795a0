"""Sub-protocols for proofs of knowledge of BBS+ and PS signatures."""

from typing import Dict, List

from charm.toolbox.pairinggroup import ZR

from ..backends.bbs_plus import PoKOfSignatureProtocol
from ..backends.ps_signature import PSPoKProtocol
from ..errors import InvalidWitness
from ..statement import PoKBBSSignatureG1, PoKPSSignature
from ..witness import PoKBBSSignatureG1Witness, PoKPSSignatureWitness
from .base import SubProtocol, merge_indexed_messages_with_blindings


def _all_messages(statement, witness, message_count: int, index: int) -> List[ZR]:
    """Revealed messages from the statement plus unrevealed ones from the witness."""
    hidden = set(range(message_count)) - set(statement.revealed_messages)
    if set(witness.unrevealed_messages) != hidden:
        raise InvalidWitness(
            f"Witness {index} must hold exactly the unrevealed messages {sorted(hidden)}, "
            f"got {sorted(witness.unrevealed_messages)}"
        )
    merged = dict(statement.revealed_messages)
    merged.update(witness.unrevealed_messages)
    return [merged[i] for i in range(message_count)]


def _hidden_blindings(statement, witness, blindings: Dict[int, ZR], group, rng):
    merged = merge_indexed_messages_with_blindings(
        sorted(witness.unrevealed_messages.items()), blindings, group, rng
    )
    return [(i, k) for i, _, k in merged]


class PoKBBSSignatureG1SubProtocol(SubProtocol):
    STATEMENT = PoKBBSSignatureG1
    WITNESS = PoKBBSSignatureG1Witness

    def _init_protocol(self, witness, setup_params, blindings, rng):
        params = self.statement.get_params(setup_params, self.id)
        messages = _all_messages(self.statement, witness, params.supported_message_count(), self.id)
        return PoKOfSignatureProtocol(
            self.group, rng, witness.signature, params, messages,
            self.statement.revealed_messages,
            _hidden_blindings(self.statement, witness, blindings, self.group, rng),
        )

    @classmethod
    def proof_challenge_contribution(cls, payload, statement, setup_params, index, group, transcript):
        payload.challenge_contribution(transcript, group, statement.revealed_messages,
                                       statement.get_params(setup_params, index))

    @classmethod
    def verify_proof_contribution(cls, payload, statement, setup_params, index, group, challenge):
        return payload.verify(group, statement.revealed_messages, challenge,
                              statement.get_public_key(setup_params, index),
                              statement.get_params(setup_params, index))

    @classmethod
    def response_for_slot(cls, payload, statement, setup_params, index, slot):
        return payload.get_resp_for_message(slot, set(statement.revealed_messages))


class PoKPSSignatureSubProtocol(SubProtocol):
    STATEMENT = PoKPSSignature
    WITNESS = PoKPSSignatureWitness

    def _init_protocol(self, witness, setup_params, blindings, rng):
        public_key = self.statement.get_public_key(setup_params, self.id)
        messages = _all_messages(self.statement, witness, public_key.supported_message_count(), self.id)
        return PSPoKProtocol(
            self.group, rng, witness.signature, self.statement.get_params(setup_params, self.id),
            public_key, messages, self.statement.revealed_messages,
            _hidden_blindings(self.statement, witness, blindings, self.group, rng),
        )

    @classmethod
    def proof_challenge_contribution(cls, payload, statement, setup_params, index, group, transcript):
        payload.challenge_contribution(transcript)

    @classmethod
    def verify_proof_contribution(cls, payload, statement, setup_params, index, group, challenge):
        return payload.verify(group, statement.revealed_messages, challenge,
                              statement.get_public_key(setup_params, index),
                              statement.get_params(setup_params, index))

    @classmethod
    def response_for_slot(cls, payload, statement, setup_params, index, slot):
        return payload.get_resp_for_message(slot, set(statement.revealed_messages))
