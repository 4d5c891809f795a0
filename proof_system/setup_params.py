"""
Setup Parameters
================

Public parameters a statement needs (signature params, public keys,
commitment keys, ...) are given either inline or as a reference into a
setup-parameter table shared by all statements of a proof, so that one
object can back many statements.

    ParamSource = Inline(param) | Reference(index)

The table is a plain list; ``Reference(i)`` resolves to ``setup_params[i]``.
"""

from dataclasses import dataclass
from typing import Any, List, Sequence, Union

from .errors import IncompatibleSetupParamAtIndex, InvalidStatement


@dataclass(frozen=True)
class Inline:
    param: Any


@dataclass(frozen=True)
class Reference:
    index: int

    def __post_init__(self):
        if not isinstance(self.index, int) or self.index < 0:
            raise InvalidStatement(f"Setup param reference must be a non-negative int, got {self.index!r}")


ParamSource = Union[Inline, Reference]

SetupParams = List[Any]


def get_param(setup_params: Sequence, source: ParamSource, expected_kind: type,
              statement_index: int):
    """
    Resolve ``source`` to a parameter object of ``expected_kind``.

    Parameters
    ----------
    setup_params : Sequence
        The setup-parameter table (may be empty)
    source : Inline or Reference
        Where the statement's parameter lives
    expected_kind : type
        Class the parameter must be an instance of
    statement_index : int
        Index of the statement resolving the parameter, for error reporting

    Returns
    -------
    The parameter object

    Raises
    ------
    IncompatibleSetupParamAtIndex
        If the reference is out of range or names an entry of another kind
    InvalidStatement
        If ``source`` is neither Inline nor Reference, or an inline
        parameter has the wrong kind
    """
    if isinstance(source, Inline):
        if not isinstance(source.param, expected_kind):
            raise InvalidStatement(
                f"Statement {statement_index} expects an inline {expected_kind.__name__}, "
                f"got {type(source.param).__name__}"
            )
        return source.param
    if isinstance(source, Reference):
        if source.index >= len(setup_params) or not isinstance(setup_params[source.index], expected_kind):
            raise IncompatibleSetupParamAtIndex(expected_kind.__name__, statement_index, source.index)
        return setup_params[source.index]
    raise InvalidStatement(
        f"Statement {statement_index} has a parameter source of type {type(source).__name__}, "
        f"expected Inline or Reference"
    )
