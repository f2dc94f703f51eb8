"""Descriptive statistics over cached snapshots."""
from collections import Counter
from datetime import datetime
from typing import Dict, Hashable, Iterable, List, Optional, Sequence, Tuple

from processor.models import (
    BlogPost,
    BlogStats,
    Channel,
    ContentItem,
    SpeakingEngagement,
    SpeakingStats,
    Summary,
    Video,
    VideoStats,
)
from processor.query import is_past, is_upcoming


def months_between(start: datetime, end: datetime) -> int:
    """
    Count whole months from start to end.

    A trailing partial month is not counted, so Jan 15 to Feb 14 is 0
    months and Jan 15 to Feb 15 is 1.
    """
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if months > 0 and (end.day, end.time()) < (start.day, start.time()):
        months -= 1
    elif months < 0 and (end.day, end.time()) > (start.day, start.time()):
        months += 1
    return months


def average_per_month(timestamps: Sequence[datetime], total: int) -> float:
    """
    Average items per month across the span of the given timestamps.

    Defined as 0 when there are no timestamps or they fall within fewer
    than two distinct calendar months.
    """
    if not timestamps or total == 0:
        return 0.0

    distinct_months = {(ts.year, ts.month) for ts in timestamps}
    if len(distinct_months) < 2:
        return 0.0

    first = min(timestamps)
    last = max(timestamps)
    return total / (months_between(first, last) + 1)


def summarize(items: Iterable[ContentItem], now: datetime) -> Summary:
    """Totals, date span and posting rate for a collection of items."""
    items = list(items)
    timestamps = [item.timestamp for item in items if item.timestamp is not None]

    if not items:
        return Summary(
            total=0,
            first_timestamp=None,
            last_timestamp=None,
            count_this_year=0,
            count_this_month=0,
            average_per_month=0.0,
        )

    this_year = [ts for ts in timestamps if ts.year == now.year]
    this_month = [ts for ts in this_year if ts.month == now.month]

    return Summary(
        total=len(items),
        first_timestamp=min(timestamps) if timestamps else None,
        last_timestamp=max(timestamps) if timestamps else None,
        count_this_year=len(this_year),
        count_this_month=len(this_month),
        average_per_month=average_per_month(timestamps, len(items)),
    )


def count_by(values: Iterable[Hashable]) -> Dict[Hashable, int]:
    """Group-by-count preserving the order in which values were first seen."""
    return dict(Counter(values))


def most_common(values: Iterable[Hashable]) -> Optional[Hashable]:
    """
    Most frequent value, or None when there are no values.

    Ties go to the value seen first.
    """
    ranked = Counter(values).most_common(1)
    return ranked[0][0] if ranked else None


def top_n(values: Iterable[Hashable], n: int) -> List[Tuple[Hashable, int]]:
    """The n most frequent values with their counts, ties in first-seen order."""
    return Counter(values).most_common(n)


def percentage(part: int, total: int) -> str:
    """Format part/total as a percentage; '0%' when total is zero."""
    if total == 0:
        return '0%'
    return f"{part * 100.0 / total:.1f}%"


def posting_frequency(average: float) -> str:
    if average >= 4:
        return 'Very active (4+ posts/month)'
    if average >= 2:
        return 'Active (2-4 posts/month)'
    if average >= 1:
        return 'Regular (1-2 posts/month)'
    return 'Occasional (less than 1 post/month)'


def speaking_frequency(average: float) -> str:
    if average == 0:
        return 'No regular schedule'
    if average < 0.5:
        return 'Less than monthly'
    if average < 1:
        return 'About monthly'
    if average < 2:
        return '1-2 times per month'
    if average < 4:
        return '2-4 times per month'
    return 'Very active (4+ per month)'


def blog_stats(posts: Sequence[BlogPost], now: datetime) -> BlogStats:
    summary = summarize(posts, now)
    with_videos = sum(1 for post in posts if post.has_youtube_video)
    all_tags = [tag for post in posts for tag in post.tags]

    return BlogStats(
        summary=summary,
        posts_with_videos=with_videos,
        video_percentage=percentage(with_videos, summary.total),
        most_common_tag=most_common(all_tags),
        top_tags=tuple(top_n(all_tags, 5)),
        posting_frequency=posting_frequency(summary.average_per_month),
    )


def speaking_stats(
    engagements: Sequence[SpeakingEngagement],
    now: datetime,
) -> SpeakingStats:
    summary = summarize(engagements, now)

    upcoming_dates = [e.start_date for e in engagements if is_upcoming(e, now)]
    past_count = sum(1 for e in engagements if is_past(e, now))

    locations = [
        e.location.strip() for e in engagements
        if e.location and e.location.strip()
    ]
    event_types = [e.event_type for e in engagements]
    type_counts = count_by(event_types)

    return SpeakingStats(
        summary=summary,
        upcoming_events=len(upcoming_dates),
        past_events=past_count,
        next_event_date=min(upcoming_dates) if upcoming_dates else None,
        most_common_location=most_common(locations),
        most_common_event_type=most_common(event_types),
        location_counts=count_by(locations),
        event_type_counts=type_counts,
        event_type_distribution={
            event_type: percentage(count, summary.total)
            for event_type, count in type_counts.items()
        },
        speaking_frequency=speaking_frequency(summary.average_per_month),
    )


def video_stats(
    videos: Sequence[Video],
    now: datetime,
    channel: Optional[Channel] = None,
) -> VideoStats:
    """Aggregates over the fetched uploads plus the channel's lifetime counters, when known."""
    summary = summarize(videos, now)
    total_views = sum(video.view_count for video in videos)
    total_likes = sum(video.like_count for video in videos)

    most_viewed = None
    for video in videos:
        if most_viewed is None or video.view_count > most_viewed.view_count:
            most_viewed = video

    return VideoStats(
        summary=summary,
        total_views=total_views,
        average_views=total_views // summary.total if summary.total else 0,
        total_likes=total_likes,
        total_comments=sum(video.comment_count for video in videos),
        like_rate=percentage(total_likes, total_views),
        most_viewed=most_viewed,
        channel=channel,
    )
