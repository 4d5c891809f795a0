"""
Composite Proofs
================

``Proof.new`` runs every statement's sub-protocol against one shared
Fiat-Shamir transcript; ``Proof.verify`` replays the transcript from the
received payloads and checks each statement and each equality group.

Workflow:
---------
    1. Validate the spec and pair every statement with its witness
    2. Sample one blinding per equality group
    3. Commit: construct one sub-protocol per statement
    4. Contribute: statement bytes then commitment bytes, in order
    5. Challenge: hash the transcript
    6. Respond: each sub-protocol turns into a StatementProof

Encoding:
---------
    Proof = challenge:scalar || count:varint || StatementProof * count
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from charm.toolbox.pairinggroup import ZR

from .errors import InvalidData, WitnessCountMismatch
from .groups import make_rng
from .proof_spec import ProofSpec
from .serialization import ByteReader, ByteWriter
from .statement import StatementKind
from .statement_proof import StatementProof
from .sub_protocols import check_witness, sub_protocol_for
from .witness import Witnesses

logger = logging.getLogger(__name__)


class VerificationFailure(Enum):
    STATEMENT = 'statement'
    WITNESS_EQUALITY = 'witness_equality'
    CHALLENGE_MISMATCH = 'challenge_mismatch'
    PROOF_LENGTH = 'proof_length'


@dataclass
class VerificationResult:
    """
    Outcome of ``Proof.verify``; truthy only when the proof is valid.

    Attributes
    ----------
    valid : bool
    failure : VerificationFailure or None
    statement_index : int or None
        Statement the failure was found at, when there is one
    reason : str
    """

    valid: bool
    failure: Optional[VerificationFailure] = None
    statement_index: Optional[int] = None
    reason: str = ''

    def __bool__(self):
        return self.valid

    @classmethod
    def success(cls) -> 'VerificationResult':
        return cls(True)

    @classmethod
    def failed(cls, failure: VerificationFailure, reason: str,
               statement_index: Optional[int] = None) -> 'VerificationResult':
        logger.debug("Verification failed (%s) at statement %s: %s",
                     failure.value, statement_index, reason)
        return cls(False, failure, statement_index, reason)


@dataclass
class Proof:
    challenge: ZR
    statement_proofs: List[StatementProof]

    @classmethod
    def new(cls, spec: ProofSpec, witnesses: Witnesses, nonce: Optional[bytes] = None,
            rng=None) -> 'Proof':
        """
        Prove every statement of ``spec``.

        Parameters
        ----------
        spec : ProofSpec
        witnesses : Witnesses
            One per statement, in the same order
        nonce : bytes, optional
            Verifier-chosen nonce bound into the transcript
        rng : random.Random-like, optional
            Randomness for blindings and commitments; the OS CSPRNG by default

        Raises
        ------
        WitnessCountMismatch
        WitnessIncompatibleWithStatement
            Both before any commitment is made
        ProofSystemError
            Any construction or commit error of a statement
        """
        spec.validate()
        if not isinstance(witnesses, Witnesses):
            witnesses = Witnesses(list(witnesses))
        if len(witnesses) != len(spec.statements):
            raise WitnessCountMismatch(len(spec.statements), len(witnesses))
        sp_classes = [check_witness(i, s, w)
                      for i, (s, w) in enumerate(zip(spec.statements, witnesses))]

        rng = rng if rng is not None else make_rng()
        group = spec.group
        blindings = spec.meta_statements.blindings_by_statement(group, rng)
        sub_protocols = [
            sp_cls(i, statement, witness, spec.setup_params, blindings.get(i, {}), group, rng)
            for i, (sp_cls, statement, witness)
            in enumerate(zip(sp_classes, spec.statements, witnesses))
        ]

        transcript = spec.new_transcript(nonce)
        for i, sp in enumerate(sub_protocols):
            spec.append_statement(transcript, i)
            sp.challenge_contribution(transcript)
        challenge = transcript.challenge()

        proofs = [sp.gen_proof_contribution(challenge) for sp in sub_protocols]
        logger.debug("Created proof of %d statements", len(proofs))
        return cls(challenge, proofs)

    def verify(self, spec: ProofSpec, nonce: Optional[bytes] = None) -> VerificationResult:
        """
        Check the proof against ``spec``.

        A malformed spec raises; anything wrong with the proof is reported
        through the returned ``VerificationResult``.
        """
        spec.validate()
        statements = spec.statements
        if len(self.statement_proofs) != len(statements):
            return VerificationResult.failed(
                VerificationFailure.PROOF_LENGTH,
                f"Proof has {len(self.statement_proofs)} statement proofs, "
                f"spec has {len(statements)} statements",
            )
        for i, (statement, sp) in enumerate(zip(statements, self.statement_proofs)):
            if sp.kind != statement.KIND:
                return VerificationResult.failed(
                    VerificationFailure.STATEMENT,
                    f"Proof of kind {sp.kind.name} for statement of kind {statement.KIND.name}", i,
                )

        group = spec.group
        transcript = spec.new_transcript(nonce)
        for i, (statement, sp) in enumerate(zip(statements, self.statement_proofs)):
            try:
                spec.append_statement(transcript, i)
                sub_protocol_for(statement).proof_challenge_contribution(
                    sp.payload, statement, spec.setup_params, i, group, transcript
                )
            except ValueError as e:
                return VerificationResult.failed(VerificationFailure.STATEMENT, str(e), i)
        if transcript.challenge() != self.challenge:
            return VerificationResult.failed(VerificationFailure.CHALLENGE_MISMATCH,
                                             "Recomputed challenge differs from the proof's")

        for i, (statement, sp) in enumerate(zip(statements, self.statement_proofs)):
            try:
                ok = sub_protocol_for(statement).verify_proof_contribution(
                    sp.payload, statement, spec.setup_params, i, group, self.challenge
                )
            except ValueError as e:
                return VerificationResult.failed(VerificationFailure.STATEMENT, str(e), i)
            if not ok:
                return VerificationResult.failed(VerificationFailure.STATEMENT,
                                                 f"Statement {i} does not verify", i)
            logger.debug("Statement %d (%s) verified", i, statement.KIND.name)

        for group_index, eq in enumerate(spec.meta_statements):
            expected = None
            for s_idx, slot in eq.sorted_refs():
                statement = statements[s_idx]
                try:
                    resp = sub_protocol_for(statement).response_for_slot(
                        self.statement_proofs[s_idx].payload, statement, spec.setup_params,
                        s_idx, slot,
                    )
                except ValueError as e:
                    return VerificationResult.failed(VerificationFailure.WITNESS_EQUALITY,
                                                     str(e), s_idx)
                if expected is None:
                    expected = resp
                elif resp != expected:
                    return VerificationResult.failed(
                        VerificationFailure.WITNESS_EQUALITY,
                        f"Equality group {group_index}: response for slot {slot} of "
                        f"statement {s_idx} differs", s_idx,
                    )
        return VerificationResult.success()

    def get_decrypted_value(self, spec: ProofSpec, index: int, secret_key: ZR) -> ZR:
        """
        Decrypt the ciphertext carried by the verifiable encryption proof at ``index``.

        Raises
        ------
        InvalidData
            If the statement proof at ``index`` is not a verifiable encryption proof
        DecryptionError
            If a chunk is not an encryption of a small value
        """
        statement = spec.statements[index]
        sp = self.statement_proofs[index]
        if sp.kind != StatementKind.VERIFIABLE_ENCRYPTION or statement.KIND != sp.kind:
            raise InvalidData(f"Statement proof {index} carries no ciphertext")
        return sp.payload.decrypt(spec.group, secret_key, statement.get_params(spec.setup_params, index))

    # ------------------------------------------------------------------
    # Wire format
    # ------------------------------------------------------------------

    def to_bytes(self, group) -> bytes:
        writer = ByteWriter(group)
        writer.write_scalar(self.challenge)
        writer.write_varint(len(self.statement_proofs))
        for sp in self.statement_proofs:
            sp.serialize(writer)
        return writer.getvalue()

    @classmethod
    def from_bytes(cls, group, data: bytes) -> 'Proof':
        """
        Raises
        ------
        InvalidData
            Unknown tags, truncated input or trailing bytes
        """
        reader = ByteReader(group, data)
        challenge = reader.read_scalar()
        count = reader.read_count()
        proofs = [StatementProof.deserialize(reader) for _ in range(count)]
        reader.finish()
        return cls(challenge, proofs)
