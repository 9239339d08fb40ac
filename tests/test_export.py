import csv
import io
from datetime import datetime

from tracker.data_models.stats import StatEntry
from tracker.services.export import build_artifact, encode_csv, export_filename

HEADER = "Name,Roll Number,Branch,Section,LeetCode Username,Problems Solved,Score"


def test_quotes_and_commas_are_escaped(make_student):
    student = make_student(1, 'a,b"c', "A01", handle="alice_lc")

    text = encode_csv([student], {1: StatEntry(solved=10, score=14)})

    assert text.splitlines()[1].startswith('"a,b""c",A01,CSE,A,alice_lc,10,14')
    decoded = list(csv.reader(io.StringIO(text)))
    assert decoded[1][0] == 'a,b"c'


def test_line_breaks_inside_fields_round_trip(make_student):
    student = make_student(1, "Line\nBreak", "A01")

    decoded = list(csv.reader(io.StringIO(encode_csv([student], {}))))

    assert decoded[1][0] == "Line\nBreak"


def test_rows_are_newline_joined_with_empty_unknowns(make_student):
    students = [make_student(1, "Alice", "A01", handle="alice_lc"), make_student(2, "Bob", "A02")]

    text = encode_csv(students, {1: StatEntry(solved=0, score=0)})

    assert text.split("\n") == [
        HEADER,
        "Alice,A01,CSE,A,alice_lc,0,0",
        "Bob,A02,CSE,A,,,",
    ]
    assert "\r" not in text
    assert not text.endswith("\n")


def test_empty_projection_exports_header_only():
    assert encode_csv([], {}) == HEADER


def test_filename_is_timestamped_without_colons():
    assert export_filename(datetime(2024, 3, 5, 14, 7, 9)) == "2024-03-05_14-07-09.csv"


def test_artifact_is_utf8_with_byte_order_mark(make_student):
    students = [make_student(1, "Zoë", "A01")]

    artifact = build_artifact(students, {}, now=datetime(2024, 1, 2, 3, 4, 5))

    assert artifact.filename == "2024-01-02_03-04-05.csv"
    assert artifact.row_count == 1
    assert artifact.data.startswith(b"\xef\xbb\xbf")
    assert artifact.data.decode("utf-8-sig").split("\n")[1].startswith("Zoë,")
