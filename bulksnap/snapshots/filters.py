"""
Snapshot selection predicates.
"""

from datetime import datetime
from typing import Callable, Dict, Iterable, List

from ..clock import cutoff
from ..tags import split_values
from .models import Snapshot

FilterFunc = Callable[[Snapshot], bool]


def expired_filter(expire_date: datetime) -> FilterFunc:
    """Match snapshots started strictly before ``expire_date``."""
    def matches(snapshot: Snapshot) -> bool:
        return snapshot.start_time < expire_date
    return matches


def tags_filter(tags: Dict[str, str]) -> FilterFunc:
    """
    Match snapshots carrying at least one tag accepted by ``tags``.

    Filter values and snapshot tag values are both comma separated lists;
    a tag matches when any of its values is one of the filter's values.

    Args:
        tags: Mapping of tag key to comma separated accepted values

    Returns:
        Predicate over snapshots
    """
    candidates = {
        key.strip(): set(split_values(value))
        for key, value in tags.items()
        if value
    }

    def matches(snapshot: Snapshot) -> bool:
        for key, value in snapshot.tags.items():
            accepted = candidates.get(key)
            if not accepted:
                continue
            if any(v in accepted for v in split_values(value)):
                return True
        return False
    return matches


def filter_snapshots(snapshots: Iterable[Snapshot], fn: FilterFunc) -> List[Snapshot]:
    return [snapshot for snapshot in snapshots if fn(snapshot)]


def sort_by_start_time(snapshots: Iterable[Snapshot]) -> List[Snapshot]:
    # sorted() is stable, so snapshots sharing a start time keep their order
    return sorted(snapshots, key=lambda snapshot: snapshot.start_time)


def select_snapshots(snapshots: Iterable[Snapshot], tags: Dict[str, str],
                     age: int, now: datetime) -> List[Snapshot]:
    """
    Narrow listed snapshots to the deletion set.

    The age filter runs first, then the tag filter, and the result is
    ordered oldest first.

    Args:
        snapshots: Listed snapshots
        tags: Tag filter map (empty disables tag filtering)
        age: Retention period in days (0 disables age filtering)
        now: Instant the cutoff is computed from

    Returns:
        Matching snapshots sorted by start time
    """
    selected = list(snapshots)
    if age > 0:
        selected = filter_snapshots(selected, expired_filter(cutoff(now, age)))
    if tags:
        selected = filter_snapshots(selected, tags_filter(tags))
    return sort_by_start_time(selected)
