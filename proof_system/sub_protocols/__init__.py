"""
Sub-protocols
=============

One sub-protocol class per statement kind. ``sub_protocol_for`` maps a
statement to its class by exact type, and ``check_witness`` rejects a
witness of the wrong kind before any commitment is made.
"""

from typing import Dict, Type

from ..bounds import enforce_and_get_u64, should_use_cls, validate_bounds
from ..errors import WitnessIncompatibleWithStatement
from .accumulator import AccumulatorMembershipSubProtocol, AccumulatorNonMembershipSubProtocol
from .base import SubProtocol, SubProtocolState, merge_indexed_messages_with_blindings
from .bound_check import (
    BoundCheckBitsSubProtocol,
    BoundCheckSmcSubProtocol,
    BoundCheckSmcWithKVSubProtocol,
)
from .commitments import PedersenCommitmentSubProtocol, PublicInequalitySubProtocol
from .signatures import PoKBBSSignatureG1SubProtocol, PoKPSSignatureSubProtocol
from .verifiable_encryption import VerifiableEncryptionSubProtocol

SUB_PROTOCOLS: Dict[type, Type[SubProtocol]] = {
    sp.STATEMENT: sp for sp in (
        PoKBBSSignatureG1SubProtocol,
        AccumulatorMembershipSubProtocol,
        AccumulatorNonMembershipSubProtocol,
        PedersenCommitmentSubProtocol,
        VerifiableEncryptionSubProtocol,
        PoKPSSignatureSubProtocol,
        BoundCheckBitsSubProtocol,
        BoundCheckSmcSubProtocol,
        BoundCheckSmcWithKVSubProtocol,
        PublicInequalitySubProtocol,
    )
}


def sub_protocol_for(statement) -> Type[SubProtocol]:
    return SUB_PROTOCOLS[type(statement)]


def check_witness(index: int, statement, witness) -> Type[SubProtocol]:
    """
    Sub-protocol class for ``statement`` after checking the witness kind.

    Raises
    ------
    WitnessIncompatibleWithStatement
        If ``witness`` is not the kind the statement takes
    """
    sp = sub_protocol_for(statement)
    if type(witness) is not sp.WITNESS:
        raise WitnessIncompatibleWithStatement(index, statement.KIND.name, type(witness).__name__)
    return sp


__all__ = [
    'SubProtocol',
    'SubProtocolState',
    'SUB_PROTOCOLS',
    'sub_protocol_for',
    'check_witness',
    'merge_indexed_messages_with_blindings',
    'enforce_and_get_u64',
    'should_use_cls',
    'validate_bounds',
]
