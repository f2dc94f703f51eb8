"""Tests for the statistics aggregator."""
from datetime import datetime, timedelta

import pytest

from conftest import make_engagement, make_post, make_video
from processor import statistics
from processor.models import Channel


NOW = datetime(2024, 6, 15, 12, 0, 0)


class TestMonthsBetween:
    """Test whole-month differences."""

    @pytest.mark.parametrize('start,end,expected', [
        (datetime(2024, 1, 15), datetime(2024, 1, 20), 0),
        (datetime(2024, 1, 15), datetime(2024, 2, 14), 0),
        (datetime(2024, 1, 15), datetime(2024, 2, 15), 1),
        (datetime(2023, 1, 1), datetime(2024, 1, 1), 12),
        (datetime(2023, 11, 30), datetime(2024, 2, 1), 2),
    ])
    def test_months_between(self, start, end, expected):
        """Test a trailing partial month is not counted."""
        assert statistics.months_between(start, end) == expected


class TestSummarize:
    """Test the shared summary."""

    def test_empty(self):
        """Test an empty snapshot yields zeros and null timestamps."""
        summary = statistics.summarize([], NOW)

        assert summary.total == 0
        assert summary.first_timestamp is None
        assert summary.last_timestamp is None
        assert summary.count_this_year == 0
        assert summary.count_this_month == 0
        assert summary.average_per_month == 0

    def test_counts_and_span(self):
        """Test totals, bounds and current year/month counts."""
        items = [
            make_post('A', datetime(2023, 6, 1)),
            make_post('B', datetime(2024, 2, 1)),
            make_post('C', datetime(2024, 6, 2)),
            make_post('D', datetime(2024, 6, 10)),
        ]

        summary = statistics.summarize(items, NOW)

        assert summary.total == 4
        assert summary.first_timestamp == datetime(2023, 6, 1)
        assert summary.last_timestamp == datetime(2024, 6, 10)
        assert summary.count_this_year == 3
        assert summary.count_this_month == 2
        # 4 items over 12 whole months + 1
        assert summary.average_per_month == pytest.approx(4 / 13)

    def test_single_month_average_is_zero(self):
        """Test fewer than two distinct months gives an average of 0."""
        items = [
            make_post('A', datetime(2024, 6, 1)),
            make_post('B', datetime(2024, 6, 20)),
        ]

        assert statistics.summarize(items, NOW).average_per_month == 0

    def test_undated_items_counted_in_total(self):
        """Test undated items count toward the total but not the span."""
        items = [make_post('A', datetime(2024, 1, 1)), make_post('B', None)]

        summary = statistics.summarize(items, NOW)

        assert summary.total == 2
        assert summary.first_timestamp == summary.last_timestamp == datetime(2024, 1, 1)


class TestGrouping:
    """Test group-by helpers."""

    def test_most_common_tie_goes_to_first_seen(self):
        """Test ties are broken by first-seen order."""
        assert statistics.most_common(['java', 'spring', 'spring', 'java']) == 'java'
        assert statistics.most_common(['spring', 'java', 'java', 'spring']) == 'spring'

    def test_most_common_empty(self):
        """Test no values gives None."""
        assert statistics.most_common([]) is None

    def test_count_by_preserves_first_seen_order(self):
        """Test the counts keep first-seen key order."""
        assert list(statistics.count_by(['b', 'a', 'b'])) == ['b', 'a']

    def test_top_n(self):
        """Test the n most frequent values with counts."""
        assert statistics.top_n(['a', 'b', 'b', 'c', 'c', 'c'], 2) == [('c', 3), ('b', 2)]


class TestPercentage:
    """Test percentage formatting."""

    def test_zero_total(self):
        """Test a zero total yields '0%'."""
        assert statistics.percentage(0, 0) == '0%'

    def test_formatting(self):
        """Test one decimal place."""
        assert statistics.percentage(1, 3) == '33.3%'
        assert statistics.percentage(2, 2) == '100.0%'


class TestBlogStats:
    """Test blog statistics."""

    def test_empty(self):
        """Test stats over no posts."""
        stats = statistics.blog_stats([], NOW)

        assert stats.summary.total == 0
        assert stats.posts_with_videos == 0
        assert stats.video_percentage == '0%'
        assert stats.most_common_tag is None
        assert stats.top_tags == ()
        assert stats.posting_frequency == 'Occasional (less than 1 post/month)'

    def test_tags_and_videos(self):
        """Test video share and tag ranking."""
        posts = [
            make_post('A', datetime(2024, 1, 1), tags=('spring', 'java'),
                      youtube_video_url='https://youtu.be/abc'),
            make_post('B', datetime(2024, 2, 1), tags=('java',)),
            make_post('C', datetime(2024, 3, 1), tags=('spring',)),
            make_post('D', datetime(2024, 4, 1)),
        ]

        stats = statistics.blog_stats(posts, NOW)

        assert stats.posts_with_videos == 1
        assert stats.video_percentage == '25.0%'
        assert stats.most_common_tag == 'spring'
        assert stats.top_tags == (('spring', 2), ('java', 2))


class TestSpeakingStats:
    """Test speaking statistics."""

    def test_empty(self):
        """Test stats over no engagements."""
        stats = statistics.speaking_stats([], NOW)

        assert stats.upcoming_events == 0
        assert stats.past_events == 0
        assert stats.next_event_date is None
        assert stats.most_common_location is None
        assert stats.event_type_distribution == {}
        assert stats.speaking_frequency == 'No regular schedule'

    def test_counts(self):
        """Test upcoming, past, locations and event types."""
        engagements = [
            make_engagement('A', NOW - timedelta(days=60), name='Devnexus Conference', location='Atlanta'),
            make_engagement('B', NOW - timedelta(days=10), name='Java User Group', location='Chicago'),
            make_engagement('C', NOW + timedelta(days=20), name='SpringOne Conference', location='Atlanta'),
            make_engagement('D', NOW + timedelta(days=5), name='Live Webinar', location='  '),
        ]

        stats = statistics.speaking_stats(engagements, NOW)

        assert stats.summary.total == 4
        assert stats.upcoming_events == 2
        assert stats.past_events == 2
        assert stats.next_event_date == NOW + timedelta(days=5)
        assert stats.most_common_location == 'Atlanta'
        assert stats.location_counts == {'Atlanta': 2, 'Chicago': 1}
        assert stats.most_common_event_type == 'Conference'
        assert stats.event_type_counts == {'Conference': 2, 'Meetup': 1, 'Webinar': 1}
        assert stats.event_type_distribution['Conference'] == '50.0%'


class TestVideoStats:
    """Test video statistics."""

    def test_empty(self):
        """Test stats over no videos."""
        stats = statistics.video_stats([], NOW)

        assert stats.total_views == 0
        assert stats.average_views == 0
        assert stats.like_rate == '0%'
        assert stats.most_viewed is None

    def test_totals(self):
        """Test view, like and comment aggregates."""
        videos = [
            make_video('a', datetime(2024, 1, 1), view_count=100, like_count=10, comment_count=1),
            make_video('b', datetime(2024, 2, 1), view_count=300, like_count=20, comment_count=2),
            make_video('c', datetime(2024, 3, 1), view_count=300, like_count=0, comment_count=0),
        ]

        stats = statistics.video_stats(videos, NOW)

        assert stats.total_views == 700
        assert stats.average_views == 233
        assert stats.total_likes == 30
        assert stats.total_comments == 3
        assert stats.like_rate == '4.3%'
        assert stats.most_viewed.video_id == 'b'

    def test_channel_attached(self):
        """Test the channel's lifetime counters ride along with the upload aggregates."""
        channel = Channel(channel_id='UCabcdefghijklmnopqrstuv', title='Dev Channel',
                          subscriber_count=1200, view_count=9000, video_count=30)

        stats = statistics.video_stats([make_video('a', datetime(2024, 1, 1), view_count=40)], NOW, channel)

        assert stats.channel.subscriber_count == 1200
        assert stats.channel.average_views_per_video == 300
        assert stats.total_views == 40
        assert statistics.video_stats([], NOW).channel is None
