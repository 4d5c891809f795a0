"""
Equality Constraints
====================

``EqualWitnesses`` declares that a set of witness slots, each named by a
(statement index, witness slot) pair, hold one and the same secret value.

The prover enforces a constraint by giving every member slot the same
blinding; the verifier checks it by comparing the members' responses.
"""

import logging
from typing import Dict, FrozenSet, Iterable, Iterator, List, Tuple

from .errors import InvalidEqualWitnesses
from .utils import random_scalar

logger = logging.getLogger(__name__)

WitnessRef = Tuple[int, int]


class EqualWitnesses:
    """
    One equality group.

    Parameters
    ----------
    witness_refs : Iterable[Tuple[int, int]]
        (statement_index, witness_slot) pairs; at least two distinct ones
    """

    def __init__(self, witness_refs: Iterable[WitnessRef]):
        refs = frozenset((int(s), int(w)) for s, w in witness_refs)
        if len(refs) < 2:
            raise InvalidEqualWitnesses("An equality group needs at least two distinct witness refs")
        self.witness_refs: FrozenSet[WitnessRef] = refs

    def sorted_refs(self) -> List[WitnessRef]:
        return sorted(self.witness_refs)

    def __eq__(self, other):
        return isinstance(other, EqualWitnesses) and self.witness_refs == other.witness_refs

    def __hash__(self):
        return hash(self.witness_refs)

    def __repr__(self):
        return f"EqualWitnesses({self.sorted_refs()})"


class MetaStatements:
    """Ordered list of equality groups."""

    def __init__(self, groups: Iterable[EqualWitnesses] = None):
        self._groups: List[EqualWitnesses] = []
        for g in groups or []:
            self.add_witness_equality(g)

    def add_witness_equality(self, group: EqualWitnesses) -> int:
        if not isinstance(group, EqualWitnesses):
            raise InvalidEqualWitnesses(f"Not an equality group: {type(group).__name__}")
        self._groups.append(group)
        return len(self._groups) - 1

    def __len__(self) -> int:
        return len(self._groups)

    def __iter__(self) -> Iterator[EqualWitnesses]:
        return iter(self._groups)

    def validate(self, statements, setup_params):
        """
        Check every group against the statements.

        Raises
        ------
        InvalidEqualWitnesses
            If a ref names a missing statement or a slot that is not hidden,
            or a ref appears in two groups
        """
        seen: Dict[WitnessRef, int] = {}
        hidden_cache: Dict[int, set] = {}
        for group_index, group in enumerate(self._groups):
            for ref in group.sorted_refs():
                s_idx, slot = ref
                if not 0 <= s_idx < len(statements):
                    raise InvalidEqualWitnesses(
                        f"Group {group_index} references statement {s_idx}, "
                        f"only {len(statements)} statements exist"
                    )
                if s_idx not in hidden_cache:
                    hidden_cache[s_idx] = statements[s_idx].hidden_slots(setup_params, s_idx)
                if slot not in hidden_cache[s_idx]:
                    raise InvalidEqualWitnesses(
                        f"Group {group_index} references slot {slot} of statement {s_idx}, "
                        f"which is not a hidden witness slot"
                    )
                if ref in seen:
                    raise InvalidEqualWitnesses(
                        f"Witness ref {ref} appears in groups {seen[ref]} and {group_index}"
                    )
                seen[ref] = group_index
        logger.debug("Validated %d equality groups", len(self._groups))

    def blindings_by_statement(self, group, rng) -> Dict[int, Dict[int, object]]:
        """
        Sample one blinding per group and hand it to every member slot.

        Returns
        -------
        Dict[int, Dict[int, ZR]]
            statement index -> {witness slot: shared blinding}
        """
        out: Dict[int, Dict[int, object]] = {}
        for eq in self._groups:
            blinding = random_scalar(group, rng)
            for s_idx, slot in eq.sorted_refs():
                out.setdefault(s_idx, {})[slot] = blinding
        return out
