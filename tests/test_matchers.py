"""Tests for matcher trees."""

import time
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from ledgerkit.domain.entities import (
    AllOf,
    AnyOf,
    Clause,
    Entry,
    EntryAggregate,
    EntryLine,
    EntryStatus,
    LineDirection,
)
from ledgerkit.domain.errors import ValidationError
from ledgerkit.domain.matchers import (
    MAX_DEPTH,
    MAX_SUBJECT_LENGTH,
    evaluate,
    matcher_to_dict,
    matcher_violations,
    parse_matcher,
)


def aggregate(description, debit="250"):
    entry = Entry(
        id="e1",
        ledger_id="u1",
        booked_at=datetime(2024, 1, 10, tzinfo=timezone.utc),
        status=EntryStatus.POSTED,
        base_currency="MXN",
        description=description,
    )
    amount = Decimal(debit)
    lines = [
        EntryLine("l1", "e1", "food", amount, "MXN", amount, "MXN", Decimal("1"), LineDirection.DEBIT),
        EntryLine("l2", "e1", "cash", -amount, "MXN", -amount, "MXN", Decimal("1"), LineDirection.CREDIT),
    ]
    return EntryAggregate(entry=entry, lines=lines)


def clause(op, value, field="description"):
    return {"field": field, "op": op, "value": value}


def test_parse_builds_tagged_tree():
    matcher = parse_matcher(
        {"all": [clause("contains", "oxxo"), {"any": [clause("equals", "x"), clause("regex", r"\d+")]}]}
    )

    assert isinstance(matcher, AllOf)
    assert matcher.children[0] == Clause("description", "contains", "oxxo")
    assert isinstance(matcher.children[1], AnyOf)


def test_parse_accepts_tree_objects():
    tree = AnyOf((Clause("description", "contains", "a"),))

    assert parse_matcher(tree) == tree


def test_dict_form_survives_serialization():
    data = {"any": [clause("contains", "a"), clause("amount_between", ["1", "2.5"], field="amount")]}

    assert matcher_to_dict(parse_matcher(data)) == data


@pytest.mark.parametrize(
    "op,value,description,expected",
    [
        ("contains", "OXXO", "compra oxxo 123", True),
        ("contains", "7-eleven", "compra oxxo 123", False),
        ("equals", "Netflix", "NETFLIX", True),
        ("equals", "Netflix", "Netflix.com", False),
        ("regex", r"^uber\s+\*?trip", "UBER *TRIP 4411", True),
        ("regex", r"^trip", "UBER TRIP", False),
    ],
)
def test_description_clauses(op, value, description, expected):
    assert evaluate(parse_matcher(clause(op, value)), aggregate(description)) is expected


def test_amount_between_is_inclusive_on_total_debit():
    matcher = parse_matcher(clause("amount_between", [100, 250], field="amount"))

    assert evaluate(matcher, aggregate("x", "250")) is True
    assert evaluate(matcher, aggregate("x", "100")) is True
    assert evaluate(matcher, aggregate("x", "250.01")) is False


def test_all_and_any():
    both = parse_matcher({"all": [clause("contains", "uber"), clause("contains", "eats")]})
    either = parse_matcher({"any": [clause("contains", "uber"), clause("contains", "didi")]})

    assert evaluate(both, aggregate("Uber Eats")) is True
    assert evaluate(both, aggregate("Uber trip")) is False
    assert evaluate(either, aggregate("DiDi food")) is True
    assert evaluate(either, aggregate("Rappi")) is False


def test_missing_description_matches_nothing_textual():
    assert evaluate(parse_matcher(clause("contains", "a")), aggregate(None)) is False


def test_regex_subject_is_truncated():
    description = "a" * MAX_SUBJECT_LENGTH + "needle"

    assert evaluate(parse_matcher(clause("regex", "needle")), aggregate(description)) is False


def test_every_violation_reported():
    data = {
        "any": [
            clause("startswith", "x"),
            clause("contains", ""),
            clause("amount_between", [5, 1], field="amount"),
            {"field": "memo", "op": "contains", "value": "x"},
        ]
    }

    with pytest.raises(ValidationError) as exc_info:
        parse_matcher(data)

    assert len(exc_info.value.violations) == 4
    assert exc_info.value.violations[0].startswith("matcher.any[0].op")


@pytest.mark.parametrize(
    "data",
    [
        "contains x",
        {"all": []},
        {"any": "x"},
        {"field": "description", "op": "contains"},
        clause("regex", "("),
        clause("regex", "x" * 201),
        clause("regex", "(a*)*"),
        clause("regex", "((a+))+"),
        clause("regex", "^(a|a)*$"),
        clause("regex", "(x|xy)*z"),
        clause("regex", r"(?:\w+\s?){2,}"),
        clause("regex", "(a|b){3}"),
        clause("amount_between", [1], field="amount"),
        clause("amount_between", ["a", "b"], field="amount"),
    ],
)
def test_malformed_matchers(data):
    assert matcher_violations(data)


def test_depth_is_bounded():
    data = clause("contains", "x")
    for _ in range(MAX_DEPTH + 1):
        data = {"all": [data]}

    assert any("nesting" in v for v in matcher_violations(data))


def test_repeated_alternation_rejected():
    with pytest.raises(ValidationError) as exc_info:
        parse_matcher(clause("regex", "^(a|a)*$"))

    assert "alternation" in exc_info.value.violations[0]


@pytest.mark.parametrize(
    "pattern",
    [
        r"(uber|didi) trip",
        r"(ab)+c",
        r"(a|b)?c",
        r"[(|)+]+x",
        r"(?:\d{3})-\d{4}",
        r"\(a\|b\)+",
    ],
)
def test_safe_patterns_accepted(pattern):
    assert matcher_violations(clause("regex", pattern)) == []


@pytest.mark.parametrize("pattern", [r"(ab)+c", r"^(uber|didi) trip", r"[(|)+]+x"])
def test_accepted_patterns_evaluate_quickly(pattern):
    """Accepted patterns stay fast on subjects built to force backtracking."""
    matcher = parse_matcher(clause("regex", pattern))
    subject = "ab" * (MAX_SUBJECT_LENGTH // 2)

    start = time.perf_counter()
    assert evaluate(matcher, aggregate(subject)) is False
    assert time.perf_counter() - start < 1.0
