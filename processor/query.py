"""Query engine over cached snapshots.

Every function takes an iterable of items (normally ``snapshot.items``)
and returns new tuples or SearchResults. Inputs are never mutated.
"""
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional, Tuple

from processor.models import ContentItem, DateRange, SearchResult
from processor.params import clamp_count, year_bounds

STATUS_UPCOMING = 'upcoming'
STATUS_ONGOING = 'ongoing'
STATUS_PAST = 'past'
STATUS_UNKNOWN = 'unknown'


def newest_first(items: Iterable[ContentItem]) -> Tuple[ContentItem, ...]:
    """Sort by timestamp descending; undated items sort as least recent."""
    items = list(items)
    dated = [item for item in items if item.timestamp is not None]
    undated = [item for item in items if item.timestamp is None]
    dated.sort(key=lambda item: item.timestamp, reverse=True)
    return tuple(dated + undated)


def latest(items: Iterable[ContentItem], count: int) -> Tuple[ContentItem, ...]:
    """Return the ``count`` most recent items (count clamped to [1, 50])."""
    return newest_first(items)[:clamp_count(count)]


def latest_result(items: Iterable[ContentItem], count: int) -> SearchResult:
    return SearchResult(
        items=latest(items, count),
        search_type='latest',
        criteria=None,
        description='latest items',
    )


def matches_keyword(item: ContentItem, term: str) -> bool:
    """Case-insensitive substring match across the item's searchable fields."""
    needle = term.lower()
    return any(needle in text.lower() for text in item.searchable_text() if text)


def search_by_keyword(items: Iterable[ContentItem], term: Optional[str], count: int) -> SearchResult:
    """
    Search items for a keyword.

    A blank keyword matches nothing rather than everything.

    Args:
        items: Items to search
        term: Keyword to look for
        count: Maximum number of results

    Returns:
        SearchResult with the newest matching items first
    """
    keyword = (term or '').strip()
    if not keyword:
        return SearchResult(
            items=(),
            search_type='keyword',
            criteria=term,
            description=f"keyword search for '{term or ''}'",
        )

    matching = [item for item in items if matches_keyword(item, keyword)]
    return SearchResult(
        items=latest(matching, count),
        search_type='keyword',
        criteria=keyword,
        description=f"keyword search for '{keyword}'",
    )


def is_within(timestamp: Optional[datetime], start: datetime, end: datetime) -> bool:
    """Inclusive bounds check; an unknown timestamp is never within range."""
    if timestamp is None:
        return False
    return start <= timestamp <= end


def filter_by_date_range(
    items: Iterable[ContentItem],
    start: datetime,
    end: datetime,
    count: int,
    description: Optional[str] = None,
) -> SearchResult:
    """Items whose timestamp lies within [start, end], newest first."""
    if description is None:
        description = f"{start.date()} to {end.date()}"

    matching = [item for item in items if is_within(item.timestamp, start, end)]
    return SearchResult(
        items=latest(matching, count),
        search_type='date_range',
        criteria=description,
        description=f"date range {description}",
    )


def filter_by_year(items: Iterable[ContentItem], year: int, count: int) -> SearchResult:
    bounds = year_bounds(year)
    return filter_by_date_range(items, bounds.start, bounds.end, count, bounds.description)


def filter_by_parsed_range(items: Iterable[ContentItem], date_range: DateRange, count: int) -> SearchResult:
    return filter_by_date_range(
        items, date_range.start, date_range.end, count, date_range.description
    )


def event_status(
    item: ContentItem,
    now: datetime,
    default_duration: timedelta = timedelta(0),
) -> str:
    """
    Classify an item relative to ``now``.

    An item without an end timestamp is treated as lasting
    ``default_duration`` from its start when deciding whether it is ongoing.
    """
    start = item.timestamp
    if start is None:
        return STATUS_UNKNOWN
    if start > now:
        return STATUS_UPCOMING

    end = item.end_timestamp or (start + default_duration)
    if end >= now:
        return STATUS_ONGOING
    return STATUS_PAST


def is_past(item: ContentItem, now: datetime) -> bool:
    """True when the item's end (or start, without an end) is before now."""
    finished_at = item.end_timestamp or item.timestamp
    return finished_at is not None and finished_at < now


def is_upcoming(item: ContentItem, now: datetime) -> bool:
    return item.timestamp is not None and item.timestamp > now


def upcoming(items: Iterable[ContentItem], count: int, now: datetime) -> SearchResult:
    """Items that have not started yet, soonest first."""
    matching = [item for item in items if is_upcoming(item, now)]
    matching.sort(key=lambda item: item.timestamp)
    return SearchResult(
        items=tuple(matching[:clamp_count(count)]),
        search_type='upcoming',
        criteria='upcoming',
        description='upcoming events',
    )


def past(items: Iterable[ContentItem], count: int, now: datetime) -> SearchResult:
    """Items that have finished, most recent first."""
    matching = [item for item in items if is_past(item, now)]
    return SearchResult(
        items=latest(matching, count),
        search_type='past',
        criteria='past',
        description='past events',
    )


def filter_by_text_field(
    items: Iterable[ContentItem],
    value: Optional[str],
    field: Callable[[ContentItem], Optional[str]],
    search_type: str,
    count: int,
) -> SearchResult:
    """Case-insensitive substring filter on a single text attribute."""
    needle = (value or '').strip()
    if not needle:
        matching = []
    else:
        lowered = needle.lower()
        matching = [
            item for item in items
            if field(item) and lowered in field(item).lower()
        ]
    return SearchResult(
        items=latest(matching, count),
        search_type=search_type,
        criteria=needle,
        description=f"{search_type.replace('_', ' ')} filter for '{needle}'",
    )


def filter_by_location(items: Iterable[ContentItem], location: Optional[str], count: int) -> SearchResult:
    return filter_by_text_field(
        items, location, lambda item: getattr(item, 'location', None), 'location', count
    )


def filter_by_event_type(items: Iterable[ContentItem], event_type: Optional[str], count: int) -> SearchResult:
    return filter_by_text_field(
        items, event_type, lambda item: getattr(item, 'event_type', None), 'event_type', count
    )


def top_by(
    items: Iterable[ContentItem],
    metric: Callable[[ContentItem], int],
    count: int,
) -> Tuple[ContentItem, ...]:
    """Items with the highest metric first; ties keep snapshot order."""
    ranked = sorted(items, key=metric, reverse=True)
    return tuple(ranked[:clamp_count(count)])
