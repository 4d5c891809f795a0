"""
Error Taxonomy
==============

Every error the proof system raises derives from ``ProofSystemError``.

Categories:
-----------
- Construction errors: statement/witness mismatches, unresolvable setup
  parameters, malformed equality constraints. Raised before any
  cryptographic work starts.
- Commit errors: a blinding supplied for a message slot that does not exist.
- Range/backend-domain errors: bad bounds, values wider than a backend supports.
- Wire errors: unknown variant tags, truncated or over-long input.
- Sub-protocol state errors: lifecycle methods called out of order.

Verification failures are NOT exceptions; see ``proof_system.proof.VerificationResult``.
"""


class ProofSystemError(ValueError):
    """Root of all proof system errors."""


# ============================================================================
# Construction errors
# ============================================================================

class InvalidStatement(ProofSystemError):
    """A statement's public data is malformed."""


class InvalidWitness(ProofSystemError):
    """A witness is malformed or cannot satisfy its statement."""


class WitnessCountMismatch(ProofSystemError):
    def __init__(self, statements: int, witnesses: int):
        self.statements = statements
        self.witnesses = witnesses
        super().__init__(
            f"Expected {statements} witnesses, one per statement, but got {witnesses}"
        )


class WitnessIncompatibleWithStatement(ProofSystemError):
    def __init__(self, statement_index: int, statement_kind: str, witness_kind: str):
        self.statement_index = statement_index
        self.statement_kind = statement_kind
        self.witness_kind = witness_kind
        super().__init__(
            f"Witness of kind {witness_kind} cannot be used for statement "
            f"{statement_index} of kind {statement_kind}"
        )


class IncompatibleSetupParamAtIndex(ProofSystemError):
    """
    A statement's parameter reference is out of range of the setup-parameter
    table, or the referenced entry is of the wrong kind.
    """

    def __init__(self, param_kind: str, statement_index: int, reference: int):
        self.param_kind = param_kind
        self.statement_index = statement_index
        self.reference = reference
        super().__init__(
            f"Statement {statement_index} expects a {param_kind} at setup "
            f"param index {reference}, which does not exist or has another kind"
        )


class InvalidEqualWitnesses(ProofSystemError):
    """An equality constraint references a missing slot, or constraints overlap."""


# ============================================================================
# Commit / blinding errors
# ============================================================================

class InvalidBlindingIndex(ProofSystemError):
    def __init__(self, index: int):
        self.index = index
        super().__init__(f"Blinding supplied for index {index} which has no message")


# ============================================================================
# Range / backend-domain errors
# ============================================================================

class BoundCheckMaxNotGreaterThanMin(ProofSystemError):
    def __init__(self, min_value: int, max_value: int):
        self.min = min_value
        self.max = max_value
        super().__init__(f"Upper bound {max_value} must be greater than lower bound {min_value}")


class UnsupportedValue(ProofSystemError):
    pass


# ============================================================================
# Wire errors
# ============================================================================

class InvalidData(ProofSystemError):
    """Input bytes are not a valid encoding (unknown tag, truncated, trailing data)."""


SerializationError = InvalidData


# ============================================================================
# Sub-protocol lifecycle errors
# ============================================================================

class SubProtocolStateError(ProofSystemError):
    pass


class SubProtocolAlreadyContributed(SubProtocolStateError):
    pass


class SubProtocolAlreadyResponded(SubProtocolStateError):
    pass


class SubProtocolNotReadyToGenerateProof(SubProtocolStateError):
    pass


class DecryptionError(ProofSystemError):
    """A ciphertext chunk does not decrypt to a value of the expected chunk size."""
