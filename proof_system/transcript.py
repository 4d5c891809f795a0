"""
Fiat-Shamir Transcript
======================

The single byte sink every sub-protocol writes its commitment-phase bytes
into, and the random oracle that turns the finished sink into the challenge
shared by all sub-protocols.

Domain Separation:
------------------
Every append is label-tagged and length-delimited:

    len(label) || label || len(data) || data        (lengths: 4 bytes, big-endian)

so no two different sequences of appends produce the same sink. The
challenge is ``group.hash(b"PSCH" || sink, ZR)``.

Order:
------
protocol label, context, nonce, then for each statement in registry order:
its kind tag, its public parameters, its sub-protocol's commitment bytes.
Prover and verifier must produce byte-identical sinks.
"""

import logging
from typing import List

from charm.toolbox.pairinggroup import PairingGroup, ZR, G1

from .serialization import element_to_bytes, scalar_size

logger = logging.getLogger(__name__)

PROTOCOL_LABEL = b"proof_system/composite-proof/v1"

_CHALLENGE_PREFIX = b"PSCH"


class Transcript:
    """
    Append-only transcript owned by exactly one prover or verifier session.

    Parameters
    ----------
    group : PairingGroup
        The pairing group; used to encode elements and hash the challenge
    label : bytes, optional
        Protocol label written first
    """

    def __init__(self, group: PairingGroup, label: bytes = PROTOCOL_LABEL):
        self.group = group
        self._sink = bytearray()
        self.append_message(b"protocol", label)

    def append_message(self, label: bytes, data: bytes):
        self._sink += len(label).to_bytes(4, 'big') + label
        self._sink += len(data).to_bytes(4, 'big') + data

    def append_u64(self, label: bytes, value: int):
        self.append_message(label, int(value).to_bytes(8, 'big'))

    def append_scalar(self, label: bytes, x: ZR):
        self.append_message(label, int(x).to_bytes(scalar_size(self.group), 'big'))

    def append_element(self, label: bytes, elem, kind=G1):
        self.append_message(label, element_to_bytes(self.group, elem, kind))

    def append_elements(self, label: bytes, elems: List, kind=G1):
        self.append_u64(label + b"/len", len(elems))
        for e in elems:
            self.append_element(label, e, kind)

    def getvalue(self) -> bytes:
        """The sink so far (for determinism checks; never needed to verify)."""
        return bytes(self._sink)

    def challenge(self) -> ZR:
        """
        Hash the complete sink to the challenge scalar.

        Returns
        -------
        ZR
            c = H(PSCH || sink)
        """
        c = self.group.hash(_CHALLENGE_PREFIX + bytes(self._sink), ZR)
        logger.debug("Derived challenge over %d transcript bytes", len(self._sink))
        return c
