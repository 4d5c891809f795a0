"""
Sub-Protocol Base
=================

One ``SubProtocol`` wraps the backend prover of one statement and walks a
fixed lifecycle:

    COMMITTED --challenge_contribution--> CONTRIBUTED --gen_proof_contribution--> RESPONDED

Construction runs the backend's commit phase with the merged blindings.
The verifier side of each kind is exposed as classmethods that work on a
received payload: ``proof_challenge_contribution``, ``verify_proof_contribution``
and ``response_for_slot``.
"""

import logging
from enum import Enum
from typing import Dict, Iterable, List, Tuple

from charm.toolbox.pairinggroup import PairingGroup, ZR

from ..errors import (
    InvalidBlindingIndex,
    SubProtocolAlreadyContributed,
    SubProtocolAlreadyResponded,
    SubProtocolNotReadyToGenerateProof,
)
from ..statement_proof import StatementProof
from ..transcript import Transcript
from ..utils import random_scalar

logger = logging.getLogger(__name__)


class SubProtocolState(Enum):
    COMMITTED = 'committed'
    CONTRIBUTED = 'contributed'
    RESPONDED = 'responded'


def merge_indexed_messages_with_blindings(indexed_messages: Iterable[Tuple[int, ZR]],
                                          blindings: Dict[int, ZR], group: PairingGroup,
                                          rng) -> List[Tuple[int, ZR, ZR]]:
    """
    Pair each message with its blinding.

    Parameters
    ----------
    indexed_messages : Iterable[Tuple[int, ZR]]
        (index, message) sorted by index
    blindings : Dict[int, ZR]
        Externally supplied blindings keyed by message index
    group : PairingGroup
        The pairing group
    rng : random.Random-like
        Source of the blindings that are not supplied

    Returns
    -------
    List[Tuple[int, ZR, ZR]]
        (index, message, blinding) in index order

    Raises
    ------
    InvalidBlindingIndex
        For the smallest blinding index that has no message

    Examples
    --------
    >>> merged = merge_indexed_messages_with_blindings([(0, m0), (1, m1), (2, m2)], {0: b0, 1: b1}, group, rng)
    >>> [i for i, _, _ in merged]
    [0, 1, 2]
    """
    messages = list(indexed_messages)
    message_indices = {i for i, _ in messages}
    for idx in sorted(blindings):
        if idx not in message_indices:
            raise InvalidBlindingIndex(idx)
    return [(i, m, blindings[i] if i in blindings else random_scalar(group, rng))
            for i, m in messages]


def single_blinding(value: ZR, blindings: Dict[int, ZR], group: PairingGroup, rng) -> ZR:
    """Blinding of the only witness slot (0)."""
    return merge_indexed_messages_with_blindings([(0, value)], blindings, group, rng)[0][2]


class SubProtocol:
    """
    Parameters
    ----------
    id : int
        Index of the statement
    statement : Statement
        The public claim
    witness : Witness
        The matching secret input
    setup_params : list
        Setup-parameter table
    blindings : Dict[int, ZR]
        Shared blindings for witness slots in equality groups
    group : PairingGroup
        The pairing group
    rng : random.Random-like
        Randomness source
    """

    STATEMENT = None
    WITNESS = None

    def __init__(self, id: int, statement, witness, setup_params, blindings: Dict[int, ZR],
                 group: PairingGroup, rng):
        self.id = id
        self.statement = statement
        self.group = group
        self.protocol = self._init_protocol(witness, setup_params, blindings or {}, rng)
        self.state = SubProtocolState.COMMITTED
        logger.debug("Sub-protocol %d (%s) committed", id, statement.KIND.name)

    def _init_protocol(self, witness, setup_params, blindings: Dict[int, ZR], rng):
        raise NotImplementedError

    def challenge_contribution(self, transcript: Transcript):
        if self.state is SubProtocolState.RESPONDED:
            raise SubProtocolAlreadyResponded(f"Sub-protocol {self.id} has already responded")
        if self.state is SubProtocolState.CONTRIBUTED:
            raise SubProtocolAlreadyContributed(
                f"Sub-protocol {self.id} has already written its challenge contribution"
            )
        self.protocol.challenge_contribution(transcript)
        self.state = SubProtocolState.CONTRIBUTED

    def gen_proof_contribution(self, challenge: ZR) -> StatementProof:
        if self.state is SubProtocolState.RESPONDED:
            raise SubProtocolAlreadyResponded(f"Sub-protocol {self.id} has already responded")
        if self.state is not SubProtocolState.CONTRIBUTED:
            raise SubProtocolNotReadyToGenerateProof(
                f"Sub-protocol {self.id} must contribute to the challenge before responding"
            )
        payload = self.protocol.gen_proof(challenge)
        self.state = SubProtocolState.RESPONDED
        # secrets are not needed after the response
        self.protocol = None
        return StatementProof(self.statement.KIND, payload)

    # ------------------------------------------------------------------
    # Verifier side
    # ------------------------------------------------------------------

    @classmethod
    def proof_challenge_contribution(cls, payload, statement, setup_params, index: int,
                                     group: PairingGroup, transcript: Transcript):
        raise NotImplementedError

    @classmethod
    def verify_proof_contribution(cls, payload, statement, setup_params, index: int,
                                  group: PairingGroup, challenge: ZR) -> bool:
        raise NotImplementedError

    @classmethod
    def response_for_slot(cls, payload, statement, setup_params, index: int, slot: int) -> ZR:
        raise NotImplementedError
