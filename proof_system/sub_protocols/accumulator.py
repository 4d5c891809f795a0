"""Sub-protocols for accumulator membership and non-membership."""

from ..backends.accumulator import MembershipProofProtocol, NonMembershipProofProtocol
from ..statement import AccumulatorMembership, AccumulatorNonMembership
from ..witness import AccumulatorMembershipWitness, AccumulatorNonMembershipWitness
from .base import SubProtocol, single_blinding


class _AccumulatorSubProtocol(SubProtocol):

    @classmethod
    def verify_proof_contribution(cls, payload, statement, setup_params, index, group, challenge):
        return payload.verify(group, statement.accumulator_value, challenge,
                              statement.get_public_key(setup_params, index),
                              statement.get_params(setup_params, index))

    @classmethod
    def response_for_slot(cls, payload, statement, setup_params, index, slot):
        return payload.get_resp_for_element()


class AccumulatorMembershipSubProtocol(_AccumulatorSubProtocol):
    STATEMENT = AccumulatorMembership
    WITNESS = AccumulatorMembershipWitness

    def _init_protocol(self, witness, setup_params, blindings, rng):
        return MembershipProofProtocol(
            self.group, rng, witness.element, witness.witness, self.statement.accumulator_value,
            single_blinding(witness.element, blindings, self.group, rng),
        )

    @classmethod
    def proof_challenge_contribution(cls, payload, statement, setup_params, index, group, transcript):
        payload.challenge_contribution(transcript, group, statement.accumulator_value)


class AccumulatorNonMembershipSubProtocol(_AccumulatorSubProtocol):
    STATEMENT = AccumulatorNonMembership
    WITNESS = AccumulatorNonMembershipWitness

    def _init_protocol(self, witness, setup_params, blindings, rng):
        return NonMembershipProofProtocol(
            self.group, rng, witness.element, witness.witness, self.statement.accumulator_value,
            self.statement.get_params(setup_params, self.id),
            single_blinding(witness.element, blindings, self.group, rng),
        )

    @classmethod
    def proof_challenge_contribution(cls, payload, statement, setup_params, index, group, transcript):
        payload.challenge_contribution(transcript, group, statement.accumulator_value,
                                       statement.get_params(setup_params, index))
