from weekly_match.services.validation import find_mutuality_errors, validate_mutuality


def test_mutual_records_are_valid():
    out = validate_mutuality({"a": ["b", "c"], "b": ["a"], "c": ["a"]})
    assert out == {"is_valid": True, "records_checked": 3, "errors": []}


def test_non_mutual_entry_is_reported():
    errors = find_mutuality_errors({"a": ["b"], "b": []})
    assert errors == ["a -> b, but b does not list a (non-mutual)"]


def test_partner_without_record_is_reported():
    errors = find_mutuality_errors({"a": ["z"]})
    assert errors == ["a -> z, but z has no match record"]


def test_self_empty_and_duplicate_entries_are_reported():
    out = validate_mutuality({"a": ["a", "", "b", "b"], "b": ["a"]})
    assert not out["is_valid"]
    joined = "\n".join(out["errors"])
    assert "a has invalid match values: ['']" in joined
    assert "a is matched with themselves" in joined
    assert "a has duplicate matches: b" in joined


def test_empty_prompt_is_valid():
    assert validate_mutuality({}) == {"is_valid": True, "records_checked": 0, "errors": []}


def test_record_over_capacity_is_reported():
    records = {"a": ["b", "c", "d", "e"], "b": ["a"], "c": ["a"], "d": ["a"], "e": ["a"]}
    assert find_mutuality_errors(records) == ["a has 4 matches, more than 3"]
    assert find_mutuality_errors(records, capacity=4) == []


def test_revealed_flags_must_line_up_with_matches():
    records = {"a": ["b"], "b": ["a"]}
    assert validate_mutuality(records, {"a": [True], "b": [False]})["is_valid"]

    errors = find_mutuality_errors(records, {"a": [False, False]})
    assert errors == ["a has 1 matches but 2 revealed flags", "b has 1 matches but 0 revealed flags"]
