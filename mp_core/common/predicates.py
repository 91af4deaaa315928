# mp_core/common/predicates.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional


@dataclass(frozen=True)
class OptionalEquals:
    """
    Value-or-wildcard predicate for one field.
    expected=None is a wildcard and matches any observed value (even None).
    """
    field: str
    expected: Any = None

    @property
    def is_wildcard(self) -> bool:
        return self.expected is None

    def matches(self, observed: Any) -> bool:
        if self.is_wildcard:
            return True
        if observed is None:
            return False
        return observed == self.expected


@dataclass(frozen=True)
class PredicateResult:
    matches: bool
    failed_fields: tuple[str, ...] = field(default_factory=tuple)
    checked_fields: tuple[str, ...] = field(default_factory=tuple)


def evaluate_predicates(
    predicates: Iterable[OptionalEquals],
    context: Mapping[str, Any],
    *,
    is_active: bool = True,
) -> PredicateResult:
    """
    AND across all predicates. An inactive rule never matches.
    Every predicate is evaluated so callers can explain a non-match.
    """
    failed: list[str] = []
    checked: list[str] = []

    for p in predicates:
        if p.is_wildcard:
            continue
        checked.append(p.field)
        if not p.matches(context.get(p.field)):
            failed.append(p.field)

    if not is_active:
        failed.insert(0, "is_active")

    return PredicateResult(matches=not failed, failed_fields=tuple(failed), checked_fields=tuple(checked))


def predicates_from(rule: Any, fields: Iterable[str], *, attr_map: Optional[Mapping[str, str]] = None) -> list[OptionalEquals]:
    """
    Read nullable predicate fields off a model instance.
    attr_map lets a context field name differ from the rule attribute (e.g. "branch_id").
    """
    attr_map = attr_map or {}
    return [OptionalEquals(field=f, expected=getattr(rule, attr_map.get(f, f))) for f in fields]


def rule_matches(rule: Any, context: Mapping[str, Any], fields: Iterable[str], *, attr_map: Optional[Mapping[str, str]] = None) -> PredicateResult:
    return evaluate_predicates(
        predicates_from(rule, fields, attr_map=attr_map),
        context,
        is_active=bool(getattr(rule, "is_active", True)),
    )
