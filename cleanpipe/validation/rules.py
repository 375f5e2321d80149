"""Named row predicates that a cleaning config can refer to.

Each predicate takes a read-only row view and returns a bool. Absent cells
arrive as ``ABSENT`` and every predicate here handles them explicitly.
"""

from collections.abc import Callable

from cleanpipe.errors import ConfigError
from cleanpipe.utils.types import ABSENT, RowPredicate, RowView

type PredicateName = str

_PREDICATES: dict[PredicateName, RowPredicate] = {}

# Score band per letter grade: inclusive lower bound, exclusive upper bound.
GRADE_SCORE_BANDS: dict[str, tuple[float | None, float | None]] = {
    "A": (90, None),
    "B": (80, 90),
    "C": (70, 80),
    "D": (None, 70),
}


def register_predicate(name: PredicateName) -> Callable[[RowPredicate], RowPredicate]:
    def decorator(func: RowPredicate) -> RowPredicate:
        _PREDICATES[name] = func
        return func

    return decorator


def get_predicate(name: PredicateName) -> RowPredicate:
    """Return the registered predicate, or raise ``ConfigError``."""
    if name not in _PREDICATES:
        known = ", ".join(sorted(_PREDICATES))
        raise ConfigError(f"Unknown validation predicate '{name}' (known: {known})")
    return _PREDICATES[name]


@register_predicate("grade_score_consistency")
def grade_score_consistency(row: RowView) -> bool:
    """The score must fall inside the band of the row's letter grade.

    A row without a score, or without a grade, has nothing to check and passes.
    """
    score = row["score"]
    grade = row["grade"]
    if score is ABSENT or grade is ABSENT:
        return True

    low, high = GRADE_SCORE_BANDS[grade]
    return bool((low is None or score >= low) and (high is None or score < high))
