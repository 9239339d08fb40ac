from tracker.data_models.roster import RollType, SortDirective, ViewState
from tracker.data_models.stats import StatEntry
from tracker.services.projection import RollClassifier, distinct_values, normalize_roll, project

ROLL_RANGES = {
    "A": {
        "REGULAR": [["23211A6701", "23211A6764"]],
        "LE": [["24215A6701", "24215A6707"]],
    },
}


def _entries(**solved_by_id):
    return {int(key[1:]): StatEntry(solved=value, score=value) for key, value in solved_by_id.items()}


def test_unresolved_students_sort_below_resolved_in_both_directions(make_student):
    resolved_zero = make_student(1, "Zero", "A01")
    unresolved = make_student(2, "Unknown", "A02")
    resolved_five = make_student(3, "Five", "A03")
    roster = [resolved_zero, unresolved, resolved_five]
    snapshot = _entries(s1=0, s3=5)

    descending = project(roster, ViewState(sort=SortDirective.DESCENDING), snapshot)
    ascending = project(roster, ViewState(sort=SortDirective.ASCENDING), snapshot)

    assert descending == [resolved_five, resolved_zero, unresolved]
    assert ascending == [unresolved, resolved_zero, resolved_five]


def test_descending_and_default_orders(make_student):
    low = make_student(1, "Low", "B01")
    high = make_student(2, "High", "C01")
    roster = [high, low]
    snapshot = _entries(s1=12, s2=45)

    by_solved = project(roster, ViewState(sort=SortDirective.DESCENDING), snapshot)
    by_roll = project(roster, ViewState(), snapshot)

    assert [snapshot[s.id].solved for s in by_solved] == [45, 12]
    assert by_roll == [low, high]


def test_default_order_normalizes_roll_numbers(make_student):
    upper = make_student(1, "Upper", "A02")
    lower_spaced = make_student(2, "Lower", " a01 ")

    assert project([upper, lower_spaced], ViewState(), {}) == [lower_spaced, upper]


def test_ties_keep_roster_order(make_student):
    first = make_student(1, "First", "X01")
    second = make_student(2, "Second", "X01")
    third = make_student(3, "Third", "X02")
    snapshot = _entries(s1=10, s2=10, s3=10)

    assert project([second, first], ViewState(), snapshot) == [second, first]
    for sort in (SortDirective.ASCENDING, SortDirective.DESCENDING):
        assert project([third, first, second], ViewState(sort=sort), snapshot) == [third, first, second]


def test_search_matches_name_or_roll_case_insensitively(make_student):
    alice = make_student(1, "Alice Kumar", "23211A6701")
    bob = make_student(2, "Bob", "23211A6702")
    roster = [alice, bob]

    assert project(roster, ViewState(search_text="KUMAR"), {}) == [alice]
    assert project(roster, ViewState(search_text="a6702"), {}) == [bob]
    assert project(roster, ViewState(search_text=""), {}) == [alice, bob]
    assert project(roster, ViewState(search_text=" "), {}) == [alice]
    assert project(roster, ViewState(search_text="zed"), {}) == []


def test_section_and_branch_filters_combine(make_student):
    a_cse = make_student(1, "A", "R1", section="A", branch="CSE")
    a_it = make_student(2, "B", "R2", section="A", branch="IT")
    b_cse = make_student(3, "C", "R3", section="B", branch="CSE")
    roster = [a_cse, a_it, b_cse]

    assert project(roster, ViewState(section="A"), {}) == [a_cse, a_it]
    assert project(roster, ViewState(branch="CSE"), {}) == [a_cse, b_cse]
    assert project(roster, ViewState(section="A", branch="CSE"), {}) == [a_cse]


def test_roll_type_filter_uses_configured_ranges(make_student):
    regular = make_student(1, "Reg", "23211A6705", section="A")
    lateral = make_student(2, "Lat", "24215A6703", section="A")
    other_section = make_student(3, "Other", "23211A6705", section="B")
    roster = [regular, lateral, other_section]
    classifier = RollClassifier(ROLL_RANGES)

    assert project(roster, ViewState(roll_type=RollType.REGULAR), {}, classifier=classifier) == [regular]
    assert project(roster, ViewState(roll_type=RollType.LATERAL_ENTRY), {}, classifier=classifier) == [lateral]
    assert len(project(roster, ViewState(), {}, classifier=classifier)) == 3


def test_classifier_skips_malformed_tables():
    classifier = RollClassifier({"B": "not a table", "C": {"XYZ": [["1", "2"]]}, "D": {"LE": [["only-one"]]}})

    assert bool(RollClassifier()) is False
    assert bool(classifier) is True
    assert bool(RollClassifier({"B": "not a table"})) is False


def test_custom_sentinel_is_used_for_unknown_counts(make_student):
    known = make_student(1, "Known", "A01")
    unknown = make_student(2, "Unknown", "A02")
    snapshot = _entries(s1=0)

    result = project([unknown, known], ViewState(sort=SortDirective.ASCENDING), snapshot, unresolved_sort_key=-100)

    assert result == [unknown, known]


def test_helpers(make_student):
    roster = [make_student(1, "A", "R1", section="B"), make_student(2, "B", "R2", section="A"), make_student(3, "C", "R3", section="B")]

    assert normalize_roll(" 23211a 6701 ") == "23211A6701"
    assert distinct_values(roster, "section") == ["A", "B"]
