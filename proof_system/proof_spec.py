"""
Proof Specification
===================

The public description both parties agree on: the statements, the equality
constraints between their hidden slots, the setup-parameter table and an
optional application context. A ``ProofSpec`` together with an optional
nonce determines the transcript prefix of every proof made against it.
"""

import logging
from typing import List, Optional

from charm.toolbox.pairinggroup import PairingGroup

from .errors import InvalidStatement
from .meta_statement import MetaStatements
from .statement import Statements
from .transcript import Transcript

logger = logging.getLogger(__name__)


def _optional_bytes(value: Optional[bytes]) -> bytes:
    return b"\x00" if value is None else b"\x01" + bytes(value)


class ProofSpec:
    """
    Parameters
    ----------
    group : PairingGroup
        Group every statement lives in
    statements : Statements
        The claims, in order
    meta_statements : MetaStatements, optional
        Equality constraints; none by default
    setup_params : list, optional
        Table that ``Reference`` parameter sources index into
    context : bytes, optional
        Application context bound into the transcript

    Examples
    --------
    >>> spec = ProofSpec(group, statements, meta_statements, setup_params)
    >>> spec.validate()
    """

    def __init__(self, group: PairingGroup, statements: Statements,
                 meta_statements: MetaStatements = None, setup_params: List = None,
                 context: Optional[bytes] = None):
        if not isinstance(statements, Statements):
            statements = Statements(list(statements))
        self.group = group
        self.statements = statements
        self.meta_statements = meta_statements if meta_statements is not None else MetaStatements()
        self.setup_params = list(setup_params or [])
        self.context = context

    def validate(self):
        """
        Resolve every parameter reference and check every equality group.

        Raises
        ------
        InvalidStatement
            If the spec has no statements or a statement is malformed
        IncompatibleSetupParamAtIndex
            If a reference is out of range or names the wrong kind
        InvalidEqualWitnesses
            If an equality group is malformed
        """
        if len(self.statements) == 0:
            raise InvalidStatement("A proof spec needs at least one statement")
        for i, statement in enumerate(self.statements):
            statement.validate(self.setup_params, i)
        self.meta_statements.validate(self.statements, self.setup_params)
        logger.debug("Proof spec with %d statements and %d equality groups is valid",
                     len(self.statements), len(self.meta_statements))

    def new_transcript(self, nonce: Optional[bytes] = None) -> Transcript:
        """Transcript holding the protocol label, context and nonce."""
        transcript = Transcript(self.group)
        transcript.append_message(b"context", _optional_bytes(self.context))
        transcript.append_message(b"nonce", _optional_bytes(nonce))
        return transcript

    def append_statement(self, transcript: Transcript, index: int):
        statement = self.statements[index]
        transcript.append_u64(b"statement/kind", int(statement.KIND))
        statement.append_to_transcript(transcript, self.setup_params, index)
