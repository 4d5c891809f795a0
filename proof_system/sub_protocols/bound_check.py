"""
Range sub-protocols
===================

Three ways to show a hidden value lies in ``[min, max)``:

- ``BoundCheckBitsSubProtocol``: bit decomposition over a Pedersen key
- ``BoundCheckSmcSubProtocol``: set membership with pairing verification
- ``BoundCheckSmcWithKVSubProtocol``: set membership, keyed verification

The set-membership prover picks CCS or CLS with ``should_use_cls``; the
verifier dispatches on the inner tag of the received proof and then checks
that the tag is the one the same heuristic selects.
"""

import logging

from ..backends.bit_range import BitRangeProtocol
from ..backends.set_membership import CLSRangeProof, SetMembershipRangeProtocol
from ..bounds import enforce_and_get_u64, should_use_cls
from ..statement import BoundCheckBits, BoundCheckSmc, BoundCheckSmcWithKV
from ..witness import BoundCheckWitness
from .base import SubProtocol, single_blinding

logger = logging.getLogger(__name__)


class BoundCheckBitsSubProtocol(SubProtocol):
    STATEMENT = BoundCheckBits
    WITNESS = BoundCheckWitness

    def _init_protocol(self, witness, setup_params, blindings, rng):
        value = enforce_and_get_u64(witness.value)
        return BitRangeProtocol(
            self.group, rng, value, self.statement.min, self.statement.max,
            self.statement.get_comm_key(setup_params, self.id),
            single_blinding(witness.value, blindings, self.group, rng),
        )

    @classmethod
    def proof_challenge_contribution(cls, payload, statement, setup_params, index, group, transcript):
        payload.challenge_contribution(transcript, statement.get_comm_key(setup_params, index))

    @classmethod
    def verify_proof_contribution(cls, payload, statement, setup_params, index, group, challenge):
        return payload.verify(group, statement.min, statement.max, challenge,
                              statement.get_comm_key(setup_params, index))

    @classmethod
    def response_for_slot(cls, payload, statement, setup_params, index, slot):
        return payload.get_resp_for_value()


class BoundCheckSmcSubProtocol(SubProtocol):
    STATEMENT = BoundCheckSmc
    WITNESS = BoundCheckWitness
    KEYED = False

    def _init_protocol(self, witness, setup_params, blindings, rng):
        value = enforce_and_get_u64(witness.value)
        use_cls = should_use_cls(self.statement.min, self.statement.max)
        return SetMembershipRangeProtocol(
            self.group, rng, value, self.statement.min, self.statement.max,
            self.statement.get_smc_params(setup_params, self.id),
            single_blinding(witness.value, blindings, self.group, rng),
            use_cls, keyed=self.KEYED,
        )

    @classmethod
    def proof_challenge_contribution(cls, payload, statement, setup_params, index, group, transcript):
        payload.challenge_contribution(transcript, statement.get_smc_params(setup_params, index),
                                       cls.KEYED)

    @classmethod
    def _secret_key(cls, statement, setup_params, index):
        return None

    @classmethod
    def verify_proof_contribution(cls, payload, statement, setup_params, index, group, challenge):
        use_cls = should_use_cls(statement.min, statement.max)
        if isinstance(payload, CLSRangeProof) != use_cls:
            logger.debug("Statement %d: range proof uses the wrong set-membership algorithm", index)
            return False
        return payload.verify(group, statement.min, statement.max, challenge,
                              statement.get_smc_params(setup_params, index),
                              cls._secret_key(statement, setup_params, index))

    @classmethod
    def response_for_slot(cls, payload, statement, setup_params, index, slot):
        return payload.get_resp_for_value()


class BoundCheckSmcWithKVSubProtocol(BoundCheckSmcSubProtocol):
    STATEMENT = BoundCheckSmcWithKV
    KEYED = True

    @classmethod
    def _secret_key(cls, statement, setup_params, index):
        return statement.get_secret_key(setup_params, index)

    @classmethod
    def verify_proof_contribution(cls, payload, statement, setup_params, index, group, challenge):
        if statement.get_secret_key(setup_params, index) is None:
            logger.debug("Statement %d: keyed range proof needs the verifier's secret key", index)
            return False
        return super().verify_proof_contribution(payload, statement, setup_params, index,
                                                 group, challenge)
