"""
CSV export of the projected dashboard.
"""

import csv
import io
from datetime import datetime
from typing import Iterable, List, Mapping, Optional

from tracker.constants import ExportConstants
from tracker.data_models.roster import ExportArtifact, StudentRecord
from tracker.data_models.stats import StatEntry


def export_filename(now: Optional[datetime] = None) -> str:
    """YYYY-MM-DD_HH-MM-SS.csv, no colons so it is safe on every filesystem."""
    now = now or datetime.now()
    return now.strftime(ExportConstants.FILENAME_FORMAT) + ExportConstants.EXTENSION


def export_rows(students: Iterable[StudentRecord], snapshot: Mapping[int, StatEntry]) -> List[List[str]]:
    rows = []
    for student in students:
        entry = snapshot.get(student.id)
        rows.append([
            student.name,
            student.roll_number,
            student.branch,
            student.section,
            student.leetcode_username,
            str(entry.solved) if entry is not None else "",
            str(entry.score) if entry is not None else "",
        ])
    return rows


def encode_csv(students: Iterable[StudentRecord], snapshot: Mapping[int, StatEntry]) -> str:
    """
    Header plus one row per student, newline-joined.

    Fields containing a comma, a double quote or a line break are quoted and
    inner quotes doubled. Unknown solved/score values are empty strings.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(ExportConstants.HEADERS)
    writer.writerows(export_rows(students, snapshot))

    text = buffer.getvalue()
    # Rows are joined, not terminated
    return text[:-1] if text.endswith("\n") else text


def build_artifact(
    students: List[StudentRecord],
    snapshot: Mapping[int, StatEntry],
    now: Optional[datetime] = None
) -> ExportArtifact:
    text = encode_csv(students, snapshot)
    return ExportArtifact(
        filename=export_filename(now),
        data=(ExportConstants.BYTE_ORDER_MARK + text).encode("utf-8"),
        row_count=len(students)
    )
