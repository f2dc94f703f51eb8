"""Per-domain services binding a snapshot cache to queries and statistics.

Every view reads the cache once and works on that single snapshot, so a
refresh happening concurrently never changes a result half way through.
"""
from datetime import datetime, timedelta
from typing import Callable, Generic, Optional, Tuple, TypeVar

from processor import query, statistics
from processor.errors import ValidationError
from processor.models import (
    BlogPost,
    BlogStats,
    Channel,
    SearchResult,
    Snapshot,
    SpeakingEngagement,
    SpeakingStats,
    Video,
    VideoStats,
)
from processor.params import clamp_count, parse_date_range, require_text
from storage.snapshot_cache import SnapshotCache, utc_now

T = TypeVar('T')


class ContentService(Generic[T]):
    """Views shared by every content domain."""

    def __init__(self, cache: SnapshotCache[T], clock: Callable[[], datetime] = utc_now):
        self.cache = cache
        self._clock = clock

    @property
    def name(self) -> str:
        return self.cache.name

    def snapshot(self) -> Snapshot[T]:
        return self.cache.get()

    def all_items(self) -> Tuple[T, ...]:
        return self.snapshot().items

    def latest(self, count: int) -> SearchResult[T]:
        return query.latest_result(self.all_items(), clamp_count(count))

    def search(self, keyword: Optional[str], count: int) -> SearchResult[T]:
        """Keyword search. Raises ValidationError for a blank keyword."""
        keyword = require_text(keyword, 'keyword')
        return query.search_by_keyword(self.all_items(), keyword, count)

    def by_date_range(self, date_range: Optional[str], count: int) -> SearchResult[T]:
        """Date range search. Raises ValidationError for malformed ranges."""
        parsed = parse_date_range(date_range)
        return query.filter_by_parsed_range(self.all_items(), parsed, count)

    def by_year(self, year: int, count: int) -> SearchResult[T]:
        return query.filter_by_year(self.all_items(), year, count)


class BlogService(ContentService[BlogPost]):
    """Views over the blog feed."""

    def stats(self) -> BlogStats:
        return statistics.blog_stats(self.all_items(), self._clock())


class SpeakingService(ContentService[SpeakingEngagement]):
    """Views over speaking engagements."""

    # Engagements without an end date are assumed to last this long
    DEFAULT_DURATION = timedelta(hours=2)
    STATUSES = (query.STATUS_UPCOMING, query.STATUS_ONGOING, query.STATUS_PAST, query.STATUS_UNKNOWN)

    def upcoming(self, count: int) -> SearchResult[SpeakingEngagement]:
        return query.upcoming(self.all_items(), count, self._clock())

    def past(self, count: int) -> SearchResult[SpeakingEngagement]:
        return query.past(self.all_items(), count, self._clock())

    def by_location(self, location: Optional[str], count: int) -> SearchResult[SpeakingEngagement]:
        location = require_text(location, 'location')
        return query.filter_by_location(self.all_items(), location, count)

    def by_event_type(self, event_type: Optional[str], count: int) -> SearchResult[SpeakingEngagement]:
        event_type = require_text(event_type, 'event_type')
        return query.filter_by_event_type(self.all_items(), event_type, count)

    def status_of(self, engagement: SpeakingEngagement, now: Optional[datetime] = None) -> str:
        return query.event_status(engagement, now or self._clock(), self.DEFAULT_DURATION)

    def by_status(self, status: Optional[str], count: int) -> SearchResult[SpeakingEngagement]:
        """
        Engagements currently in the given status, newest first.

        Raises:
            ValidationError: If the status is blank or not one of STATUSES
        """
        status = require_text(status, 'status').lower()
        if status not in self.STATUSES:
            raise ValidationError(
                f"Unknown status '{status}'. Use one of: {', '.join(self.STATUSES)}"
            )

        now = self._clock()
        matching = [e for e in self.all_items() if self.status_of(e, now) == status]
        return SearchResult(
            items=query.latest(matching, count),
            search_type='status',
            criteria=status,
            description=f"{status} events",
        )

    def stats(self) -> SpeakingStats:
        return statistics.speaking_stats(self.all_items(), self._clock())


class VideoService(ContentService[Video]):
    """Views over the video catalog and its channel."""

    def __init__(
        self,
        cache: SnapshotCache[Video],
        channel_cache: Optional[SnapshotCache[Channel]] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        super().__init__(cache, clock=clock)
        self.channel_cache = channel_cache

    def channel(self) -> Optional[Channel]:
        """The channel, or None when it is not configured or never fetched."""
        if self.channel_cache is None:
            return None
        items = self.channel_cache.get().items
        return items[0] if items else None

    def top_videos(self, count: int) -> Tuple[Video, ...]:
        return query.top_by(self.all_items(), lambda video: video.view_count, count)

    def stats(self) -> VideoStats:
        return statistics.video_stats(self.all_items(), self._clock(), self.channel())
