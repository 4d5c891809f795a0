"""
Witnesses
=========

Secret inputs, one per statement and in the same order. Witnesses are never
serialized or logged; ``__repr__`` hides their contents.
"""

from dataclasses import dataclass
from typing import Dict, Iterator, List

from charm.toolbox.pairinggroup import ZR

from .backends.accumulator import MembershipWitness, NonMembershipWitness
from .backends.bbs_plus import BBSPlusSignature
from .backends.ps_signature import PSSignature
from .errors import InvalidWitness


class Witness:
    """Base of all witnesses."""

    def __repr__(self):
        return f"{type(self).__name__}(<hidden>)"


@dataclass(repr=False)
class PoKBBSSignatureG1Witness(Witness):
    """
    Parameters
    ----------
    signature : BBSPlusSignature
    unrevealed_messages : Dict[int, ZR]
        Messages not revealed by the statement, keyed by message index
    """

    signature: BBSPlusSignature
    unrevealed_messages: Dict[int, ZR]


@dataclass(repr=False)
class PoKPSSignatureWitness(Witness):
    signature: PSSignature
    unrevealed_messages: Dict[int, ZR]


@dataclass(repr=False)
class AccumulatorMembershipWitness(Witness):
    element: ZR
    witness: MembershipWitness


@dataclass(repr=False)
class AccumulatorNonMembershipWitness(Witness):
    element: ZR
    witness: NonMembershipWitness


@dataclass(repr=False)
class PedersenCommitmentWitness(Witness):
    messages: List[ZR]


@dataclass(repr=False)
class VerifiableEncryptionWitness(Witness):
    message: ZR


@dataclass(repr=False)
class BoundCheckWitness(Witness):
    """The value of any of the range statements."""

    value: ZR


@dataclass(repr=False)
class PublicInequalityWitness(Witness):
    message: ZR


class Witnesses:
    """Ordered witnesses, aligned with ``Statements`` by position."""

    def __init__(self, witnesses: List[Witness] = None):
        self._witnesses: List[Witness] = []
        for w in witnesses or []:
            self.add(w)

    def add(self, witness: Witness) -> int:
        if not isinstance(witness, Witness):
            raise InvalidWitness(f"Not a witness: {type(witness).__name__}")
        self._witnesses.append(witness)
        return len(self._witnesses) - 1

    def __len__(self) -> int:
        return len(self._witnesses)

    def __iter__(self) -> Iterator[Witness]:
        return iter(self._witnesses)

    def __getitem__(self, index: int) -> Witness:
        return self._witnesses[index]
