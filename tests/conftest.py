"""Shared fixtures for the test suite."""
from datetime import datetime, timedelta

import pytest

from processor.models import BlogPost, SpeakingEngagement, Video


class FakeClock:
    """Manually advanced clock for cache and service tests."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    """Clock frozen at 2024-06-15 12:00 until advanced."""
    return FakeClock(datetime(2024, 6, 15, 12, 0, 0))


def make_post(title, published_at, description='', tags=(), youtube_video_url=None):
    return BlogPost(
        title=title,
        link=f"https://example.com/blog/{title.lower().replace(' ', '-')}",
        guid=title,
        description=description,
        published_at=published_at,
        tags=tuple(tags),
        youtube_video_url=youtube_video_url,
    )


def make_engagement(title, start_date, end_date=None, name=None, location=None, description=None):
    return SpeakingEngagement(
        title=title,
        url=None,
        name=name,
        start_date=start_date,
        end_date=end_date,
        location=location,
        description=description,
    )


def make_video(video_id, published_at, view_count=0, like_count=0, comment_count=0, title=None):
    return Video(
        video_id=video_id,
        title=title or f"Video {video_id}",
        url=f"https://www.youtube.com/watch?v={video_id}",
        published_at=published_at,
        view_count=view_count,
        like_count=like_count,
        comment_count=comment_count,
    )
