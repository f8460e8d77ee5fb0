"""Rule matcher clause trees.

A matcher is either a leaf ``Clause`` or an ``AllOf``/``AnyOf`` node over
child matchers. The serialized form is plain dicts::

    {"all": [{"field": "description", "op": "contains", "value": "uber"},
             {"any": [...]}]}
"""

import re
from decimal import Decimal
from functools import lru_cache
from typing import Any

from ledgerkit.domain.entities import AllOf, AnyOf, Clause, EntryAggregate, Matcher
from ledgerkit.domain.errors import ValidationError, invalid
from ledgerkit.domain.money import to_decimal

DESCRIPTION_OPS = {"contains", "equals", "regex"}
AMOUNT_OPS = {"amount_between"}
FIELD_OPS = {"description": DESCRIPTION_OPS, "amount": AMOUNT_OPS}

MAX_DEPTH = 8
MAX_PATTERN_LENGTH = 200
MAX_SUBJECT_LENGTH = 1000

# Brace quantifier such as {3}, {2,} or {0,1}
_BRACE = re.compile(r"\{(\d*)(,(\d*))?\}")


def _brace_repeats(match: re.Match) -> bool:
    """True when the brace allows more than one repetition."""
    low, comma, high = match.group(1), match.group(2), match.group(3)
    if comma is None:
        return bool(low) and int(low) > 1
    return not high or int(high) > 1


def _skip_class(pattern: str, i: int) -> int:
    """Index just past the character class opening at ``i``."""
    i += 1
    if i < len(pattern) and pattern[i] == "^":
        i += 1
    if i < len(pattern) and pattern[i] == "]":
        i += 1
    while i < len(pattern) and pattern[i] != "]":
        i += 2 if pattern[i] == "\\" else 1
    return i + 1


def _unsafe_repeats(pattern: str) -> bool:
    """True when a repeated group holds a quantifier or an alternation.

    Both shapes, e.g. ``(a+)+`` and ``(a|ab)*``, let the backtracking
    engine try exponentially many splits of the subject.
    """
    # One [has_quantifier, has_alternation] pair per open group
    groups: list[list[bool]] = []
    i = 0
    while i < len(pattern):
        ch = pattern[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "[":
            i = _skip_class(pattern, i)
            continue
        if ch == "(":
            groups.append([False, False])
        elif ch == "|":
            if groups:
                groups[-1][1] = True
        elif ch == ")":
            if groups:
                has_quantifier, has_alternation = groups.pop()
                nxt = pattern[i + 1] if i + 1 < len(pattern) else ""
                brace = _BRACE.match(pattern, i + 1) if nxt == "{" else None
                repeated = nxt in ("*", "+") or (brace is not None and _brace_repeats(brace))
                if repeated and (has_quantifier or has_alternation):
                    return True
                if groups:
                    groups[-1][0] = groups[-1][0] or has_quantifier
                    groups[-1][1] = groups[-1][1] or has_alternation
        elif ch in "*+?" and i > 0 and pattern[i - 1] != "(":
            if groups:
                groups[-1][0] = True
        elif ch == "{":
            brace = _BRACE.match(pattern, i)
            if brace is not None:
                if groups:
                    groups[-1][0] = True
                i = brace.end()
                continue
        i += 1
    return False


def parse_matcher(data: Any) -> Matcher:
    """Build a matcher tree from its dict form.

    Raises:
        ValidationError: If the structure or any clause is malformed
    """
    if isinstance(data, (AllOf, AnyOf, Clause)):
        data = matcher_to_dict(data)
    violations = matcher_violations(data)
    if violations:
        raise ValidationError(invalid("matcher", violations), violations)
    return _build(data)


def _build(data: dict) -> Matcher:
    if "all" in data:
        return AllOf(tuple(_build(child) for child in data["all"]))
    if "any" in data:
        return AnyOf(tuple(_build(child) for child in data["any"]))
    value = data["value"]
    if data["op"] == "amount_between":
        value = (to_decimal(value[0]), to_decimal(value[1]))
    return Clause(field=data["field"], op=data["op"], value=value)


def matcher_to_dict(matcher: Matcher) -> dict:
    """Serialize a matcher tree back to its dict form."""
    if isinstance(matcher, AllOf):
        return {"all": [matcher_to_dict(child) for child in matcher.children]}
    if isinstance(matcher, AnyOf):
        return {"any": [matcher_to_dict(child) for child in matcher.children]}
    value = matcher.value
    if matcher.op == "amount_between":
        value = [str(value[0]), str(value[1])]
    return {"field": matcher.field, "op": matcher.op, "value": value}


def matcher_violations(data: Any, path: str = "matcher", depth: int = 0) -> list[str]:
    """Collect every structural problem in a matcher's dict form."""
    if depth > MAX_DEPTH:
        return [f"{path}: nesting deeper than {MAX_DEPTH}"]
    if isinstance(data, (AllOf, AnyOf, Clause)):
        data = matcher_to_dict(data)
    if not isinstance(data, dict):
        return [f"{path}: must be an object"]

    for key in ("all", "any"):
        if key in data:
            children = data[key]
            if not isinstance(children, list) or not children:
                return [f"{path}.{key}: must be a non-empty list"]
            violations = []
            for i, child in enumerate(children):
                violations.extend(matcher_violations(child, f"{path}.{key}[{i}]", depth + 1))
            return violations

    violations = []
    field_name = data.get("field")
    op = data.get("op")
    if field_name not in FIELD_OPS:
        violations.append(f"{path}.field: must be one of {', '.join(sorted(FIELD_OPS))}")
    elif op not in FIELD_OPS[field_name]:
        violations.append(
            f"{path}.op: '{op}' not supported for field '{field_name}'"
        )
    if "value" not in data:
        violations.append(f"{path}.value: required")
        return violations

    value = data["value"]
    if op in DESCRIPTION_OPS:
        if not isinstance(value, str) or not value:
            violations.append(f"{path}.value: must be a non-empty string")
        elif op == "regex":
            violations.extend(f"{path}.value: {v}" for v in pattern_violations(value))
    elif op == "amount_between":
        violations.extend(f"{path}.value: {v}" for v in _range_violations(value))
    return violations


def pattern_violations(pattern: str) -> list[str]:
    """Check a regex pattern against the evaluation bounds."""
    if len(pattern) > MAX_PATTERN_LENGTH:
        return [f"pattern longer than {MAX_PATTERN_LENGTH} characters"]
    if _unsafe_repeats(pattern):
        return ["repeated groups may not contain quantifiers or alternation"]
    try:
        _compile(pattern)
    except re.error as e:
        return [f"invalid pattern: {e}"]
    return []


def _range_violations(value: Any) -> list[str]:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        return ["must be a [min, max] pair"]
    try:
        low, high = to_decimal(value[0]), to_decimal(value[1])
    except ValueError:
        return ["bounds must be numbers"]
    if low > high:
        return ["min must not exceed max"]
    return []


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern:
    return re.compile(pattern, re.IGNORECASE)


def evaluate(matcher: Matcher, aggregate: EntryAggregate) -> bool:
    """Evaluate a matcher tree against an entry aggregate."""
    if isinstance(matcher, AllOf):
        return all(evaluate(child, aggregate) for child in matcher.children)
    if isinstance(matcher, AnyOf):
        return any(evaluate(child, aggregate) for child in matcher.children)
    return _evaluate_clause(matcher, aggregate)


def _evaluate_clause(clause: Clause, aggregate: EntryAggregate) -> bool:
    description = (aggregate.entry.description or "")[:MAX_SUBJECT_LENGTH]
    if clause.op == "contains":
        return str(clause.value).lower() in description.lower()
    if clause.op == "equals":
        return description.lower() == str(clause.value).lower()
    if clause.op == "regex":
        return _compile(str(clause.value)).search(description) is not None
    if clause.op == "amount_between":
        low, high = clause.value
        total: Decimal = aggregate.total_debit
        return low <= total <= high
    return False
