"""
Dashboard projection: which students are shown, and in what order.

A pure function of the roster, the viewer's ViewState and an aggregation
snapshot. It is recomputed from scratch on every change; rosters are small
enough that correctness wins over incremental patching.
"""

from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from tracker.constants import ScoringConstants
from tracker.data_models.roster import ALL, RollType, SortDirective, StudentRecord, ViewState
from tracker.data_models.stats import StatEntry
from tracker.utils.logger import setup_logger

logger = setup_logger(__name__)


def normalize_roll(roll_number: str) -> str:
    """Strip all whitespace and upper-case, so ' 23211a6701' == '23211A6701'."""
    return "".join((roll_number or "").split()).upper()


class RollClassifier:
    """
    Classifies roll numbers as regular or lateral entry per section.

    The table maps section -> roll type -> list of inclusive [start, end]
    ranges, compared as normalized strings:

        {"A": {"REGULAR": [["23211A6701", "23211A6764"]],
               "LE": [["24215A6701", "24215A6707"]]}}
    """

    def __init__(self, table: Optional[Mapping] = None):
        self._ranges: Dict[Tuple[str, RollType], List[Tuple[str, str]]] = {}
        for section, by_type in (table or {}).items():
            if not isinstance(by_type, Mapping):
                logger.warning(f"Roll ranges for section '{section}' must be an object, skipping")
                continue
            for type_name, ranges in by_type.items():
                try:
                    roll_type = RollType(str(type_name).upper())
                except ValueError:
                    logger.warning(f"Unknown roll type '{type_name}' for section '{section}', skipping")
                    continue
                if roll_type is RollType.ALL:
                    continue
                parsed = []
                for pair in ranges or []:
                    if not isinstance(pair, (list, tuple)) or len(pair) != 2:
                        logger.warning(f"Invalid roll range {pair!r} for section '{section}', skipping")
                        continue
                    parsed.append((normalize_roll(str(pair[0])), normalize_roll(str(pair[1]))))
                self._ranges[(str(section).upper(), roll_type)] = parsed

    def __bool__(self) -> bool:
        return bool(self._ranges)

    def matches(self, student: StudentRecord, roll_type: RollType) -> bool:
        if roll_type is RollType.ALL:
            return True
        ranges = self._ranges.get((student.section.upper(), roll_type), [])
        roll = normalize_roll(student.roll_number)
        return any(start <= roll <= end for start, end in ranges)


def matches_search(student: StudentRecord, search_text: str) -> bool:
    needle = (search_text or "").lower()
    if not needle:
        return True
    return needle in student.name.lower() or needle in student.roll_number.lower()


def sort_key_for(
    student: StudentRecord,
    snapshot: Mapping[int, StatEntry],
    unresolved_sort_key: int = ScoringConstants.UNRESOLVED_SORT_KEY
) -> int:
    entry = snapshot.get(student.id)
    return entry.solved if entry is not None else unresolved_sort_key


def project(
    roster: Iterable[StudentRecord],
    view_state: ViewState,
    snapshot: Mapping[int, StatEntry],
    unresolved_sort_key: int = ScoringConstants.UNRESOLVED_SORT_KEY,
    classifier: Optional[RollClassifier] = None
) -> List[StudentRecord]:
    """
    Filter and sort the roster for display.

    Filtering keeps a student when the search text (case-insensitive) is a
    substring of the name or roll number and every section/branch/roll-type
    selection either is ALL or matches. Sorting is stable:

    - SortDirective.NONE orders by normalized roll number, ascending
    - ASCENDING/DESCENDING order by solved count, with unknown counts using
      unresolved_sort_key so they land at the low end in both directions
    """
    classifier = classifier or RollClassifier()

    filtered = [
        student for student in roster
        if matches_search(student, view_state.search_text)
        and (view_state.section == ALL or student.section == view_state.section)
        and (view_state.branch == ALL or student.branch == view_state.branch)
        and classifier.matches(student, view_state.roll_type)
    ]

    if view_state.sort is SortDirective.NONE:
        return sorted(filtered, key=lambda student: normalize_roll(student.roll_number))

    return sorted(
        filtered,
        key=lambda student: sort_key_for(student, snapshot, unresolved_sort_key),
        reverse=view_state.sort is SortDirective.DESCENDING
    )


def distinct_values(roster: Sequence[StudentRecord], attribute: str) -> List[str]:
    """Sorted unique section/branch labels present in the roster."""
    return sorted({getattr(student, attribute) for student in roster if getattr(student, attribute)})
