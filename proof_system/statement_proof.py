"""
Statement Proofs and their Wire Format
======================================

A ``StatementProof`` is the finished payload of one sub-protocol, tagged
with its statement kind.

Encoding:
---------
    StatementProof = tag:u8 || payload

    tag  payload
    ---  ------------------------------------------------
    0    PoKOfSignatureG1Proof       (BBS+)
    1    MembershipProof
    2    NonMembershipProof
    3    PedersenCommitmentProof     (Schnorr)
    4    VerifiableEncryptionProof
    5    PSPoKProof
    6    BitRangeProof
    7    inner:u8 || CCSRangeProof | CLSRangeProof     (pairing check)
    8    inner:u8 || CCSRangeProof | CLSRangeProof     (keyed verification)
    9    InequalityProof

Set-membership inner tags: 0 = CCS, 1 = CLS.

The table is part of the wire contract: reordering or inserting a tag
changes the format version. Unknown outer or inner tags raise
``InvalidData``.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Tuple

from .backends.accumulator import MembershipProof, NonMembershipProof
from .backends.bbs_plus import PoKOfSignatureG1Proof
from .backends.bit_range import BitRangeProof
from .backends.elgamal import VerifiableEncryptionProof
from .backends.inequality import InequalityProof
from .backends.ps_signature import PSPoKProof
from .backends.schnorr import PedersenCommitmentProof
from .backends.set_membership import CCSRangeProof, CLSRangeProof
from .errors import InvalidData
from .serialization import ByteReader, ByteWriter
from .statement import StatementKind

SMC_INNER_CCS = 0
SMC_INNER_CLS = 1

_SMC_INNER: Dict[int, type] = {SMC_INNER_CCS: CCSRangeProof, SMC_INNER_CLS: CLSRangeProof}


@dataclass
class StatementProof:
    kind: StatementKind
    payload: object

    def serialize(self, writer: ByteWriter):
        encode, _ = _CODECS[self.kind]
        writer.write_u8(int(self.kind))
        encode(writer, self.payload)

    @classmethod
    def deserialize(cls, reader: ByteReader) -> 'StatementProof':
        tag = reader.read_u8()
        try:
            kind = StatementKind(tag)
        except ValueError:
            raise InvalidData(f"Unknown statement proof tag {tag}, expected 0..{len(StatementKind) - 1}")
        _, decode = _CODECS[kind]
        return cls(kind, decode(reader))

    def to_bytes(self, group) -> bytes:
        writer = ByteWriter(group)
        self.serialize(writer)
        return writer.getvalue()

    @classmethod
    def from_bytes(cls, group, data: bytes) -> 'StatementProof':
        reader = ByteReader(group, data)
        sp = cls.deserialize(reader)
        reader.finish()
        return sp


def _plain(proof_cls) -> Tuple[Callable, Callable]:
    return (lambda w, p: p.serialize(w)), proof_cls.deserialize


def _smc(keyed: bool) -> Tuple[Callable, Callable]:
    def encode(writer: ByteWriter, proof):
        writer.write_u8(SMC_INNER_CLS if isinstance(proof, CLSRangeProof) else SMC_INNER_CCS)
        proof.serialize(writer, keyed)

    def decode(reader: ByteReader):
        inner = reader.read_u8()
        proof_cls = _SMC_INNER.get(inner)
        if proof_cls is None:
            raise InvalidData(f"Unknown set-membership range proof tag {inner}, expected 0 or 1")
        return proof_cls.deserialize(reader, keyed)

    return encode, decode


_CODECS: Dict[StatementKind, Tuple[Callable, Callable]] = {
    StatementKind.POK_BBS_SIGNATURE_G1: _plain(PoKOfSignatureG1Proof),
    StatementKind.ACCUMULATOR_MEMBERSHIP: _plain(MembershipProof),
    StatementKind.ACCUMULATOR_NON_MEMBERSHIP: _plain(NonMembershipProof),
    StatementKind.PEDERSEN_COMMITMENT: _plain(PedersenCommitmentProof),
    StatementKind.VERIFIABLE_ENCRYPTION: _plain(VerifiableEncryptionProof),
    StatementKind.POK_PS_SIGNATURE: _plain(PSPoKProof),
    StatementKind.BOUND_CHECK_BITS: _plain(BitRangeProof),
    StatementKind.BOUND_CHECK_SMC: _smc(keyed=False),
    StatementKind.BOUND_CHECK_SMC_WITH_KV: _smc(keyed=True),
    StatementKind.PUBLIC_INEQUALITY: _plain(InequalityProof),
}
