"""
Composite Zero-Knowledge Proofs
===============================

A prover convinces a verifier, non-interactively, that a list of statements
hold at the same time, and that hidden values shared between statements are
equal, without revealing them.

Everything lives in Type-3 pairing groups from charm-crypto; all
sub-protocols share one Fiat-Shamir transcript and one challenge.

Modules:
--------
- groups: Group initialization, label-derived generators, randomness
- transcript: Fiat-Shamir transcript with domain separation
- serialization: Canonical byte codec for scalars and group elements
- backends: BBS+, PS, accumulators, verifiable encryption, range and
  inequality proofs
- statement / witness: Public claims and their secret inputs
- meta_statement: Equality constraints between hidden witness slots
- setup_params: Inline or referenced public parameters
- sub_protocols: One prover/verifier state machine per statement kind
- proof_spec / proof: Composition, verification and the wire format

Usage:
------
    from proof_system import (setup, make_rng, ProofSpec, Proof, Statements,
                              Witnesses, MetaStatements, EqualWitnesses, Inline)
    from proof_system.statement import PoKBBSSignatureG1, BoundCheckBits
    from proof_system.witness import PoKBBSSignatureG1Witness, BoundCheckWitness

    group = setup('BN254')['group']
    statements = Statements([PoKBBSSignatureG1(Inline(params), Inline(pk), {}),
                             BoundCheckBits(18, 65, Inline(comm_key))])
    meta = MetaStatements([EqualWitnesses([(0, 2), (1, 0)])])
    spec = ProofSpec(group, statements, meta)

    proof = Proof.new(spec, Witnesses([sig_witness, BoundCheckWitness(age)]), nonce=b"n")
    data = proof.to_bytes(group)
    assert Proof.from_bytes(group, data).verify(spec, nonce=b"n")
"""

__version__ = "0.1.0"

from .errors import ProofSystemError, InvalidData, SerializationError
from .groups import setup, make_rng
from .meta_statement import EqualWitnesses, MetaStatements
from .proof import Proof, VerificationFailure, VerificationResult
from .proof_spec import ProofSpec
from .setup_params import Inline, Reference
from .statement import StatementKind, Statements
from .statement_proof import StatementProof
from .witness import Witnesses

__all__ = [
    'setup',
    'make_rng',
    'ProofSystemError',
    'InvalidData',
    'SerializationError',
    'EqualWitnesses',
    'MetaStatements',
    'Proof',
    'VerificationFailure',
    'VerificationResult',
    'ProofSpec',
    'Inline',
    'Reference',
    'StatementKind',
    'Statements',
    'StatementProof',
    'Witnesses',
]
