"""
Statements
==========

Public claims, one class per kind. The kind's ``StatementKind`` value is the
versioned wire tag of its proof (see ``statement_proof``).

Each statement holds public values plus ``ParamSource``s for the parameters
it shares with other statements, and knows:

- which witness slots are hidden (and so may appear in equality constraints)
- its canonical public bytes for the Fiat-Shamir transcript

Witness slots by kind:
----------------------
- PoKBBSSignatureG1, PoKPSSignature: message index (revealed ones excluded)
- PedersenCommitment: index of the committed message
- every other kind: slot 0, the single secret value
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, Iterator, List, Optional, Set

from charm.toolbox.pairinggroup import ZR, G1

from .backends.accumulator import AccumulatorParams, AccumulatorPublicKey
from .backends.bbs_plus import BBSPlusPublicKey, BBSPlusSignatureParams
from .backends.elgamal import ElgamalParams, ElgamalPublicKey
from .backends.ps_signature import PSPublicKey, PSSignatureParams
from .backends.schnorr import PedersenCommitmentKey
from .backends.set_membership import SmcParams, SmcSecretKey
from .bounds import validate_bounds
from .errors import InvalidStatement
from .setup_params import ParamSource, get_param
from .transcript import Transcript


class StatementKind(IntEnum):
    """Statement kinds; the value is the wire tag of the kind's proof."""

    POK_BBS_SIGNATURE_G1 = 0
    ACCUMULATOR_MEMBERSHIP = 1
    ACCUMULATOR_NON_MEMBERSHIP = 2
    PEDERSEN_COMMITMENT = 3
    VERIFIABLE_ENCRYPTION = 4
    POK_PS_SIGNATURE = 5
    BOUND_CHECK_BITS = 6
    BOUND_CHECK_SMC = 7
    BOUND_CHECK_SMC_WITH_KV = 8
    PUBLIC_INEQUALITY = 9


def _append_revealed(transcript: Transcript, revealed: Dict[int, ZR]):
    transcript.append_u64(b"revealed/len", len(revealed))
    for idx in sorted(revealed):
        transcript.append_u64(b"revealed/index", idx)
        transcript.append_scalar(b"revealed/message", revealed[idx])


def _check_revealed(revealed: Dict[int, ZR], message_count: int, index: int):
    for idx in revealed:
        if not 0 <= idx < message_count:
            raise InvalidStatement(
                f"Statement {index} reveals message {idx} but only {message_count} messages are signed"
            )


class Statement:
    """
    Base of all statements.

    Statements are frozen but compare and hash by identity: they hold
    parameter objects and revealed-message dicts, which have no value hash.
    """

    KIND = None

    def validate(self, setup_params, index: int):
        """Resolve every parameter; raise construction errors early."""
        self.hidden_slots(setup_params, index)

    def hidden_slots(self, setup_params, index: int) -> Set[int]:
        return {0}

    def append_to_transcript(self, transcript: Transcript, setup_params, index: int):
        raise NotImplementedError


# ============================================================================
# Signatures
# ============================================================================

@dataclass(frozen=True, eq=False)
class PoKBBSSignatureG1(Statement):
    """Possession of a BBS+ signature, ``revealed_messages`` disclosed."""

    KIND = StatementKind.POK_BBS_SIGNATURE_G1

    params: ParamSource
    public_key: ParamSource
    revealed_messages: Dict[int, ZR] = field(default_factory=dict)

    def get_params(self, setup_params, index: int) -> BBSPlusSignatureParams:
        return get_param(setup_params, self.params, BBSPlusSignatureParams, index)

    def get_public_key(self, setup_params, index: int) -> BBSPlusPublicKey:
        return get_param(setup_params, self.public_key, BBSPlusPublicKey, index)

    def validate(self, setup_params, index: int):
        self.get_public_key(setup_params, index)
        self.hidden_slots(setup_params, index)

    def hidden_slots(self, setup_params, index: int) -> Set[int]:
        count = self.get_params(setup_params, index).supported_message_count()
        _check_revealed(self.revealed_messages, count, index)
        return set(range(count)) - set(self.revealed_messages)

    def append_to_transcript(self, transcript: Transcript, setup_params, index: int):
        self.get_params(setup_params, index).append_to_transcript(transcript)
        self.get_public_key(setup_params, index).append_to_transcript(transcript)
        _append_revealed(transcript, self.revealed_messages)


@dataclass(frozen=True, eq=False)
class PoKPSSignature(Statement):
    """Possession of a Pointcheval-Sanders signature, ``revealed_messages`` disclosed."""

    KIND = StatementKind.POK_PS_SIGNATURE

    params: ParamSource
    public_key: ParamSource
    revealed_messages: Dict[int, ZR] = field(default_factory=dict)

    def get_params(self, setup_params, index: int) -> PSSignatureParams:
        return get_param(setup_params, self.params, PSSignatureParams, index)

    def get_public_key(self, setup_params, index: int) -> PSPublicKey:
        return get_param(setup_params, self.public_key, PSPublicKey, index)

    def validate(self, setup_params, index: int):
        self.get_params(setup_params, index)
        self.hidden_slots(setup_params, index)

    def hidden_slots(self, setup_params, index: int) -> Set[int]:
        count = self.get_public_key(setup_params, index).supported_message_count()
        _check_revealed(self.revealed_messages, count, index)
        return set(range(count)) - set(self.revealed_messages)

    def append_to_transcript(self, transcript: Transcript, setup_params, index: int):
        self.get_params(setup_params, index).append_to_transcript(transcript)
        self.get_public_key(setup_params, index).append_to_transcript(transcript)
        _append_revealed(transcript, self.revealed_messages)


# ============================================================================
# Accumulators
# ============================================================================

@dataclass(frozen=True, eq=False)
class _AccumulatorStatement(Statement):
    params: ParamSource
    public_key: ParamSource
    accumulator_value: G1

    def get_params(self, setup_params, index: int) -> AccumulatorParams:
        return get_param(setup_params, self.params, AccumulatorParams, index)

    def get_public_key(self, setup_params, index: int) -> AccumulatorPublicKey:
        return get_param(setup_params, self.public_key, AccumulatorPublicKey, index)

    def validate(self, setup_params, index: int):
        self.get_params(setup_params, index)
        self.get_public_key(setup_params, index)

    def append_to_transcript(self, transcript: Transcript, setup_params, index: int):
        self.get_params(setup_params, index).append_to_transcript(transcript)
        self.get_public_key(setup_params, index).append_to_transcript(transcript)
        transcript.append_element(b"acc/value", self.accumulator_value)


@dataclass(frozen=True, eq=False)
class AccumulatorMembership(_AccumulatorStatement):
    """A hidden element is in the accumulator with value ``accumulator_value``."""

    KIND = StatementKind.ACCUMULATOR_MEMBERSHIP


@dataclass(frozen=True, eq=False)
class AccumulatorNonMembership(_AccumulatorStatement):
    """A hidden element is not in the accumulator with value ``accumulator_value``."""

    KIND = StatementKind.ACCUMULATOR_NON_MEMBERSHIP


# ============================================================================
# Commitments and encryption
# ============================================================================

@dataclass(frozen=True, eq=False)
class PedersenCommitment(Statement):
    """Knowledge of m_1..m_n with commitment = ∏ bases_i^{m_i}."""

    KIND = StatementKind.PEDERSEN_COMMITMENT

    commitment_key: ParamSource
    commitment: G1

    def get_comm_key(self, setup_params, index: int) -> PedersenCommitmentKey:
        return get_param(setup_params, self.commitment_key, PedersenCommitmentKey, index)

    def hidden_slots(self, setup_params, index: int) -> Set[int]:
        return set(range(len(self.get_comm_key(setup_params, index).bases)))

    def append_to_transcript(self, transcript: Transcript, setup_params, index: int):
        self.get_comm_key(setup_params, index).append_to_transcript(transcript)
        transcript.append_element(b"pedersen/commitment", self.commitment)


@dataclass(frozen=True, eq=False)
class VerifiableEncryption(Statement):
    """The proof's ciphertext encrypts the hidden value under ``public_key``."""

    KIND = StatementKind.VERIFIABLE_ENCRYPTION

    params: ParamSource
    public_key: ParamSource

    def get_params(self, setup_params, index: int) -> ElgamalParams:
        return get_param(setup_params, self.params, ElgamalParams, index)

    def get_encryption_key(self, setup_params, index: int) -> ElgamalPublicKey:
        return get_param(setup_params, self.public_key, ElgamalPublicKey, index)

    def validate(self, setup_params, index: int):
        self.get_params(setup_params, index)
        self.get_encryption_key(setup_params, index)

    def append_to_transcript(self, transcript: Transcript, setup_params, index: int):
        self.get_params(setup_params, index).append_to_transcript(transcript)
        self.get_encryption_key(setup_params, index).append_to_transcript(transcript)


# ============================================================================
# Range and inequality
# ============================================================================

@dataclass(frozen=True, eq=False)
class _BoundCheckStatement(Statement):
    min: int
    max: int

    def __post_init__(self):
        validate_bounds(self.min, self.max)

    def _append_bounds(self, transcript: Transcript):
        transcript.append_u64(b"bounds/min", self.min)
        transcript.append_u64(b"bounds/max", self.max)


@dataclass(frozen=True, eq=False)
class BoundCheckBits(_BoundCheckStatement):
    """Hidden value in [min, max), bit decomposition; value must fit in 64 bits."""

    KIND = StatementKind.BOUND_CHECK_BITS

    commitment_key: ParamSource = None

    def get_comm_key(self, setup_params, index: int) -> PedersenCommitmentKey:
        key = get_param(setup_params, self.commitment_key, PedersenCommitmentKey, index)
        if len(key.bases) < 2:
            raise InvalidStatement(f"Statement {index} needs a commitment key with 2 bases")
        return key

    def validate(self, setup_params, index: int):
        self.get_comm_key(setup_params, index)

    def append_to_transcript(self, transcript: Transcript, setup_params, index: int):
        self._append_bounds(transcript)
        self.get_comm_key(setup_params, index).append_to_transcript(transcript)


@dataclass(frozen=True, eq=False)
class BoundCheckSmc(_BoundCheckStatement):
    """Hidden value in [min, max), set membership with pairing-based verification."""

    KIND = StatementKind.BOUND_CHECK_SMC

    params: ParamSource = None

    def get_smc_params(self, setup_params, index: int) -> SmcParams:
        return get_param(setup_params, self.params, SmcParams, index)

    def validate(self, setup_params, index: int):
        self.get_smc_params(setup_params, index)

    def append_to_transcript(self, transcript: Transcript, setup_params, index: int):
        self._append_bounds(transcript)
        self.get_smc_params(setup_params, index).append_to_transcript(transcript)


@dataclass(frozen=True, eq=False)
class BoundCheckSmcWithKV(BoundCheckSmc):
    """
    As ``BoundCheckSmc`` but checked by a verifier holding the digit signing
    keys. The prover's statement leaves ``secret_key`` unset.
    """

    KIND = StatementKind.BOUND_CHECK_SMC_WITH_KV

    secret_key: Optional[ParamSource] = None

    def get_secret_key(self, setup_params, index: int) -> Optional[SmcSecretKey]:
        if self.secret_key is None:
            return None
        return get_param(setup_params, self.secret_key, SmcSecretKey, index)

    def validate(self, setup_params, index: int):
        self.get_smc_params(setup_params, index)
        self.get_secret_key(setup_params, index)


@dataclass(frozen=True, eq=False)
class PublicInequality(Statement):
    """The hidden value differs from ``inequal_to``."""

    KIND = StatementKind.PUBLIC_INEQUALITY

    inequal_to: ZR
    commitment_key: ParamSource

    def get_comm_key(self, setup_params, index: int) -> PedersenCommitmentKey:
        key = get_param(setup_params, self.commitment_key, PedersenCommitmentKey, index)
        if len(key.bases) < 2:
            raise InvalidStatement(f"Statement {index} needs a commitment key with 2 bases")
        return key

    def validate(self, setup_params, index: int):
        self.get_comm_key(setup_params, index)

    def append_to_transcript(self, transcript: Transcript, setup_params, index: int):
        transcript.append_scalar(b"ineq/value", self.inequal_to)
        self.get_comm_key(setup_params, index).append_to_transcript(transcript)


# ============================================================================
# Registry
# ============================================================================

class Statements:
    """Ordered statement registry; the position of a statement is its index."""

    def __init__(self, statements: List[Statement] = None):
        self._statements: List[Statement] = []
        for s in statements or []:
            self.add(s)

    def add(self, statement: Statement) -> int:
        if not isinstance(statement, Statement) or statement.KIND is None:
            raise InvalidStatement(f"Not a statement: {type(statement).__name__}")
        self._statements.append(statement)
        return len(self._statements) - 1

    def __len__(self) -> int:
        return len(self._statements)

    def __iter__(self) -> Iterator[Statement]:
        return iter(self._statements)

    def __getitem__(self, index: int) -> Statement:
        return self._statements[index]
