# events_core/workflows/categorizer.py
"""
Dashboard bucket categorization (status x time).

Single source of truth: BUCKET_RULES, a priority-ordered list of
(bucket, condition). Both consumers are derived from it mechanically:

- categorize()    : first matching rule wins (in-memory, one snapshot)
- query_filter()  : Django Q for "rule i matches AND no earlier rule matches",
                    OR-ed over every rule of the bucket

Because the Q is compiled from the same conditions in the same order,
listing pages and badge counts partition events identically.
"""

from __future__ import annotations

from collections import namedtuple
from dataclasses import dataclass
from datetime import datetime
from functools import reduce
from typing import Dict, FrozenSet, Iterable, Optional, Tuple
import operator

from django.db.models import Count, Q
from django.utils import timezone

from .errors import ValidationError
from .rules import WorkflowState as S, normalize_state


# ===============================================================
# BUCKETS
# ===============================================================
REQUIRES_ACTION = "requires-action"
PENDING = "pending"
PUBLISHED = "published"
HISTORIC = "historic"

BUCKETS: Tuple[str, ...] = (REQUIRES_ACTION, PENDING, PUBLISHED, HISTORIC)

DEFAULT_BUCKET = PENDING


# ===============================================================
# CONDITIONS
# ===============================================================
@dataclass(frozen=True)
class Ended:
    """end_date < now"""


@dataclass(frozen=True)
class StateIn:
    states: FrozenSet[str]


@dataclass(frozen=True)
class Not:
    condition: object


@dataclass(frozen=True)
class AllOf:
    conditions: Tuple[object, ...]


@dataclass(frozen=True)
class AnyOf:
    conditions: Tuple[object, ...]


@dataclass(frozen=True)
class BucketRule:
    bucket: str
    condition: object


def _states(*members) -> FrozenSet[str]:
    return frozenset(m.value for m in members)


BUCKET_RULES: Tuple[BucketRule, ...] = (
    # Expired events are history whatever their status.
    BucketRule(HISTORIC, Ended()),
    BucketRule(HISTORIC, StateIn(_states(S.REJECTED, S.CANCELLED))),
    BucketRule(
        REQUIRES_ACTION,
        StateIn(_states(S.PENDING_INTERNAL_APPROVAL, S.PENDING_PUBLIC_APPROVAL, S.REQUIRES_CHANGES)),
    ),
    BucketRule(PENDING, StateIn(_states(S.APPROVED_INTERNAL, S.DRAFT))),
    BucketRule(PUBLISHED, StateIn(_states(S.PUBLISHED))),
)


# ===============================================================
# SNAPSHOT
# ===============================================================
EventSnapshot = namedtuple("EventSnapshot", ["status", "end_date"])


def snapshot_of(event) -> EventSnapshot:
    """
    Read (status, end_date) once. Accepts a model instance, an
    EventSnapshot, or a (status, end_date) pair from values_list().
    """
    if isinstance(event, tuple):
        status, end_date = event
    else:
        status, end_date = event.status, event.end_date
    return EventSnapshot(normalize_state(status), end_date)


# ===============================================================
# COMPILATION
# ===============================================================
def _check_bucket(bucket: str) -> str:
    b = str(bucket or "").strip().lower()
    if b not in BUCKETS:
        raise ValidationError(
            f"Unknown dashboard tab '{bucket}'. Use one of: {', '.join(BUCKETS)}.",
            field="tab",
        )
    return b


def compile_bucket(bucket: str):
    """
    Condition tree selecting exactly the events categorize() puts in bucket.
    """
    b = _check_bucket(bucket)
    clauses = []
    earlier = []

    for rule in BUCKET_RULES:
        if rule.bucket == b:
            clauses.append(AllOf((rule.condition,) + tuple(Not(c) for c in earlier)))
        earlier.append(rule.condition)

    if b == DEFAULT_BUCKET:
        clauses.append(AllOf(tuple(Not(c) for c in earlier)))

    return AnyOf(tuple(clauses))


def evaluate(condition, snapshot: EventSnapshot, now: datetime) -> bool:
    if isinstance(condition, Ended):
        return snapshot.end_date is not None and snapshot.end_date < now
    if isinstance(condition, StateIn):
        return snapshot.status in condition.states
    if isinstance(condition, Not):
        return not evaluate(condition.condition, snapshot, now)
    if isinstance(condition, AllOf):
        return all(evaluate(c, snapshot, now) for c in condition.conditions)
    if isinstance(condition, AnyOf):
        return any(evaluate(c, snapshot, now) for c in condition.conditions)
    raise TypeError(f"Unsupported condition: {condition!r}")


def to_q(condition, now: datetime) -> Q:
    if isinstance(condition, Ended):
        return Q(end_date__lt=now)
    if isinstance(condition, StateIn):
        return Q(status__in=sorted(condition.states))
    if isinstance(condition, Not):
        return ~to_q(condition.condition, now)
    if isinstance(condition, AllOf):
        return reduce(operator.and_, (to_q(c, now) for c in condition.conditions), Q())
    if isinstance(condition, AnyOf):
        parts = [to_q(c, now) for c in condition.conditions]
        if not parts:
            return Q(pk__in=[])
        return reduce(operator.or_, parts)
    raise TypeError(f"Unsupported condition: {condition!r}")


# ===============================================================
# PUBLIC API
# ===============================================================
def categorize(event, now: Optional[datetime] = None) -> str:
    now = now or timezone.now()
    snap = snapshot_of(event)
    for rule in BUCKET_RULES:
        if evaluate(rule.condition, snap, now):
            return rule.bucket
    return DEFAULT_BUCKET


def matches(bucket: str, event, now: Optional[datetime] = None) -> bool:
    now = now or timezone.now()
    return evaluate(compile_bucket(bucket), snapshot_of(event), now)


def query_filter(bucket: str, now: Optional[datetime] = None) -> Q:
    """
    ORM predicate for a dashboard tab. Equivalent to:

    historic        : end_date < now OR status in {rejected, cancelled}
    other tabs      : status in <tab states> AND end_date >= now
    """
    now = now or timezone.now()
    return to_q(compile_bucket(bucket), now)


def empty_counts() -> Dict[str, int]:
    return {b: 0 for b in BUCKETS}


def build_summary_counts(events: Iterable, now: Optional[datetime] = None) -> Dict[str, int]:
    now = now or timezone.now()
    counts = empty_counts()
    for event in events:
        counts[categorize(event, now)] += 1
    return counts


def summary_counts_for_queryset(queryset, now: Optional[datetime] = None) -> Dict[str, int]:
    """
    Database-side tally using the same compiled predicates as listing.
    """
    now = now or timezone.now()
    aggregates = {
        b.replace("-", "_"): Count("pk", filter=query_filter(b, now))
        for b in BUCKETS
    }
    row = queryset.aggregate(**aggregates)
    return {b: int(row[b.replace("-", "_")] or 0) for b in BUCKETS}


__all__ = [
    "REQUIRES_ACTION",
    "PENDING",
    "PUBLISHED",
    "HISTORIC",
    "BUCKETS",
    "DEFAULT_BUCKET",
    "BUCKET_RULES",
    "BucketRule",
    "EventSnapshot",
    "snapshot_of",
    "compile_bucket",
    "evaluate",
    "to_q",
    "categorize",
    "matches",
    "query_filter",
    "empty_counts",
    "build_summary_counts",
    "summary_counts_for_queryset",
]
