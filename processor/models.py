"""Data models for cached content and query results."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Generic, Optional, Protocol, Tuple, TypeVar


class ContentItem(Protocol):
    """Shape every cached item exposes to the query engine and aggregator."""

    @property
    def timestamp(self) -> Optional[datetime]: ...

    @property
    def end_timestamp(self) -> Optional[datetime]: ...

    @property
    def tags(self) -> Tuple[str, ...]: ...

    def searchable_text(self) -> Tuple[str, ...]: ...


T = TypeVar('T')


@dataclass(frozen=True)
class BlogPost:
    """Post parsed from the blog feed."""
    title: str
    link: str
    guid: str
    description: str
    published_at: Optional[datetime]
    author: Optional[str] = None
    tags: Tuple[str, ...] = ()
    youtube_video_url: Optional[str] = None
    site_url: Optional[str] = None

    @property
    def timestamp(self) -> Optional[datetime]:
        return self.published_at

    @property
    def end_timestamp(self) -> Optional[datetime]:
        return None

    @property
    def has_youtube_video(self) -> bool:
        return bool(self.youtube_video_url)

    @property
    def full_url(self) -> str:
        """Absolute post URL; relative links are resolved against the site."""
        if self.link and self.link.startswith('http'):
            return self.link
        base = (self.site_url or '').rstrip('/')
        link = self.link or ''
        if link and not link.startswith('/'):
            link = '/' + link
        return base + link

    def searchable_text(self) -> Tuple[str, ...]:
        return (self.title or '', self.description or '')


@dataclass(frozen=True)
class SpeakingEngagement:
    """Talk, workshop or other appearance from the engagements listing."""
    title: str
    url: Optional[str]
    name: Optional[str]
    start_date: Optional[datetime]
    end_date: Optional[datetime]
    location: Optional[str]
    description: Optional[str]

    EVENT_TYPE_KEYWORDS = (
        ('Conference', ('conference',)),
        ('Meetup', ('meetup', 'user group')),
        ('Workshop', ('workshop',)),
        ('Webinar', ('webinar', 'virtual')),
        ('Podcast', ('podcast',)),
    )

    @property
    def timestamp(self) -> Optional[datetime]:
        return self.start_date

    @property
    def end_timestamp(self) -> Optional[datetime]:
        return self.end_date

    @property
    def tags(self) -> Tuple[str, ...]:
        return (self.event_type,)

    @property
    def event_type(self) -> str:
        """Classify the engagement from keywords in its event name."""
        if not self.name:
            return 'Speaking Event'

        lower_name = self.name.lower()
        for event_type, keywords in self.EVENT_TYPE_KEYWORDS:
            if any(keyword in lower_name for keyword in keywords):
                return event_type
        return 'Speaking Event'

    def searchable_text(self) -> Tuple[str, ...]:
        return (
            self.title or '',
            self.description or '',
            self.name or '',
            self.location or '',
        )


@dataclass(frozen=True)
class Video:
    """Upload from the video channel with its engagement counters."""
    video_id: str
    title: str
    url: str
    published_at: Optional[datetime]
    view_count: int = 0
    like_count: int = 0
    comment_count: int = 0
    description: str = ''
    duration: Optional[str] = None
    thumbnail_url: Optional[str] = None

    @property
    def timestamp(self) -> Optional[datetime]:
        return self.published_at

    @property
    def end_timestamp(self) -> Optional[datetime]:
        return None

    @property
    def tags(self) -> Tuple[str, ...]:
        return ()

    def searchable_text(self) -> Tuple[str, ...]:
        return (self.title or '', self.description or '')


@dataclass(frozen=True)
class Channel:
    """Video channel profile with its lifetime counters."""
    channel_id: str
    title: str
    description: str = ''
    subscriber_count: int = 0
    view_count: int = 0
    video_count: int = 0
    published_at: Optional[datetime] = None
    subscriber_count_hidden: bool = False
    uploads_playlist_id: Optional[str] = None

    @property
    def average_views_per_video(self) -> int:
        return self.view_count // self.video_count if self.video_count else 0


@dataclass(frozen=True)
class Snapshot(Generic[T]):
    """Immutable collection of items from one successful fetch.

    ``produced_at`` is None only for the empty snapshot served before any
    fetch has succeeded.
    """
    items: Tuple[T, ...] = ()
    produced_at: Optional[datetime] = None

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items


@dataclass(frozen=True)
class SearchResult(Generic[T]):
    """Items selected by a query plus a description of the query."""
    items: Tuple[T, ...]
    search_type: str
    criteria: Optional[str]
    description: str

    @property
    def total_matches(self) -> int:
        return len(self.items)

    @property
    def has_results(self) -> bool:
        return bool(self.items)


@dataclass(frozen=True)
class DateRange:
    """Inclusive datetime bounds parsed from caller input."""
    start: datetime
    end: datetime
    description: str
    year: Optional[int] = None


@dataclass(frozen=True)
class Summary:
    """Descriptive statistics common to every domain."""
    total: int
    first_timestamp: Optional[datetime]
    last_timestamp: Optional[datetime]
    count_this_year: int
    count_this_month: int
    average_per_month: float


@dataclass(frozen=True)
class BlogStats:
    summary: Summary
    posts_with_videos: int
    video_percentage: str
    most_common_tag: Optional[str]
    top_tags: Tuple[Tuple[str, int], ...]
    posting_frequency: str


@dataclass(frozen=True)
class SpeakingStats:
    summary: Summary
    upcoming_events: int
    past_events: int
    next_event_date: Optional[datetime]
    most_common_location: Optional[str]
    most_common_event_type: Optional[str]
    location_counts: Dict[str, int] = field(default_factory=dict)
    event_type_counts: Dict[str, int] = field(default_factory=dict)
    event_type_distribution: Dict[str, str] = field(default_factory=dict)
    speaking_frequency: str = 'No regular schedule'


@dataclass(frozen=True)
class VideoStats:
    summary: Summary
    total_views: int
    average_views: int
    total_likes: int
    total_comments: int
    like_rate: str
    most_viewed: Optional[Video]
    channel: Optional[Channel] = None
