"""Tests for the YouTube video source."""
from datetime import datetime

import pytest
import responses

from processor.errors import SourceError
from sources.videos import VideoSource, parse_timestamp

API = VideoSource.API_URL
CHANNEL_ID = 'UCabcdefghijklmnopqrstuv'


def playlist_item(video_id, title, published):
    return {
        'id': f"item-{video_id}",
        'snippet': {
            'title': title,
            'description': f"About {title}",
            'publishedAt': published,
            'resourceId': {'videoId': video_id},
            'thumbnails': {'high': {'url': f"https://i.ytimg.com/vi/{video_id}/hq.jpg"}}
        },
        'contentDetails': {'videoId': video_id, 'videoPublishedAt': published}
    }


def add_channel(uploads='UUabcdefghijklmnopqrstuv'):
    responses.add(
        responses.GET,
        f"{API}/channels",
        json={'items': [{'contentDetails': {'relatedPlaylists': {'uploads': uploads}}}]},
        status=200
    )


class TestVideoSource:
    """Test VideoSource fetching and parsing."""

    @responses.activate
    def test_fetch_snapshot_success(self):
        """Test uploads are joined with their statistics."""
        add_channel()
        responses.add(
            responses.GET,
            f"{API}/playlistItems",
            json={'items': [
                playlist_item('vid1', 'Spring Boot 3', '2024-03-01T15:00:00Z'),
                playlist_item('vid2', 'Java 21', '2024-02-01T15:00:00Z'),
            ]},
            status=200
        )
        responses.add(
            responses.GET,
            f"{API}/videos",
            json={'items': [
                {
                    'id': 'vid1',
                    'statistics': {'viewCount': '1500', 'likeCount': '120', 'commentCount': '8'},
                    'contentDetails': {'duration': 'PT15M33S'}
                },
                {
                    'id': 'vid2',
                    'statistics': {'viewCount': '900'}
                }
            ]},
            status=200
        )

        videos = VideoSource('k' * 39, CHANNEL_ID, application_name='hub-test').fetch_snapshot()

        assert [v.video_id for v in videos] == ['vid1', 'vid2']
        first = videos[0]
        assert first.url == 'https://www.youtube.com/watch?v=vid1'
        assert first.published_at == datetime(2024, 3, 1, 15, 0, 0)
        assert first.view_count == 1500
        assert first.like_count == 120
        assert first.comment_count == 8
        assert first.duration == 'PT15M33S'
        assert first.thumbnail_url == 'https://i.ytimg.com/vi/vid1/hq.jpg'
        # Hidden counters default to zero
        assert videos[1].like_count == 0

        request = responses.calls[0].request
        assert 'key=' + 'k' * 39 in request.url
        assert request.headers['User-Agent'] == 'hub-test'
        assert 'id=vid1%2Cvid2' in responses.calls[2].request.url

    @responses.activate
    def test_pagination_stops_at_max_videos(self):
        """Test paging follows nextPageToken until max_videos is reached."""
        add_channel()
        responses.add(
            responses.GET,
            f"{API}/playlistItems",
            json={
                'items': [playlist_item('a', 'A', '2024-03-01T00:00:00Z'),
                          playlist_item('b', 'B', '2024-02-01T00:00:00Z')],
                'nextPageToken': 'page2'
            },
            status=200
        )
        responses.add(
            responses.GET,
            f"{API}/playlistItems",
            json={'items': [playlist_item('c', 'C', '2024-01-01T00:00:00Z')], 'nextPageToken': 'page3'},
            status=200
        )
        responses.add(responses.GET, f"{API}/videos", json={'items': []}, status=200)

        videos = VideoSource('k' * 39, CHANNEL_ID, max_videos=3).fetch_snapshot()

        assert [v.video_id for v in videos] == ['a', 'b', 'c']
        playlist_calls = [c for c in responses.calls if '/playlistItems' in c.request.url]
        assert len(playlist_calls) == 2
        assert 'pageToken=page2' in playlist_calls[1].request.url

    @responses.activate
    def test_unknown_channel_raises_source_error(self):
        """Test an empty channel lookup raises SourceError."""
        responses.add(responses.GET, f"{API}/channels", json={'items': []}, status=200)

        with pytest.raises(SourceError, match='channel not found'):
            VideoSource('k' * 39, CHANNEL_ID).fetch_snapshot()

    @responses.activate
    def test_api_error_raises_source_error(self):
        """Test a non-2xx API response raises SourceError."""
        responses.add(responses.GET, f"{API}/channels", json={'error': {'code': 403}}, status=403)

        with pytest.raises(SourceError) as exc_info:
            VideoSource('k' * 39, CHANNEL_ID).fetch_snapshot()

        assert exc_info.value.source == 'youtube'

    @responses.activate
    def test_items_without_video_id_skipped(self):
        """Test playlist items missing a video id are dropped."""
        add_channel()
        broken = playlist_item('x', 'Broken', '2024-01-01T00:00:00Z')
        broken['snippet']['resourceId'] = {}
        responses.add(
            responses.GET,
            f"{API}/playlistItems",
            json={'items': [broken, playlist_item('ok', 'Fine', '2024-01-02T00:00:00Z')]},
            status=200
        )
        responses.add(responses.GET, f"{API}/videos", json={'items': []}, status=200)

        videos = VideoSource('k' * 39, CHANNEL_ID).fetch_snapshot()

        assert [v.video_id for v in videos] == ['ok']

    @responses.activate
    def test_invalid_json_raises_source_error(self):
        """Test a 200 response whose body is not JSON raises SourceError."""
        responses.add(responses.GET, f"{API}/channels", body='<html>quota page</html>', status=200)

        with pytest.raises(SourceError, match='not valid JSON'):
            VideoSource('k' * 39, CHANNEL_ID).fetch_snapshot()

    @responses.activate
    def test_channel_without_uploads_raises_source_error(self):
        """Test a channel lookup missing the uploads playlist raises SourceError."""
        responses.add(responses.GET, f"{API}/channels", json={'items': [{'id': CHANNEL_ID}]}, status=200)

        with pytest.raises(SourceError, match='no uploads playlist'):
            VideoSource('k' * 39, CHANNEL_ID).fetch_snapshot()

    @responses.activate
    def test_out_of_range_timestamp_keeps_snapshot(self):
        """Test an upload date that overflows on UTC conversion only loses that date."""
        add_channel()
        responses.add(
            responses.GET,
            f"{API}/playlistItems",
            json={'items': [
                playlist_item('ok', 'Fine', '2024-01-02T00:00:00Z'),
                playlist_item('edge', 'Edge', '0001-01-01T00:00:00+01:00'),
            ]},
            status=200
        )
        responses.add(responses.GET, f"{API}/videos", json={'items': []}, status=200)

        videos = VideoSource('k' * 39, CHANNEL_ID).fetch_snapshot()

        assert [v.video_id for v in videos] == ['ok', 'edge']
        assert videos[1].published_at is None

    @responses.activate
    def test_fetch_channel(self):
        """Test the channel profile and lifetime counters are parsed."""
        responses.add(
            responses.GET,
            f"{API}/channels",
            json={'items': [{
                'id': CHANNEL_ID,
                'snippet': {
                    'title': 'Dev Channel',
                    'description': 'Talks and tutorials',
                    'publishedAt': '2015-06-01T12:00:00Z'
                },
                'statistics': {
                    'viewCount': '50000',
                    'subscriberCount': '1200',
                    'hiddenSubscriberCount': False,
                    'videoCount': '100'
                },
                'contentDetails': {'relatedPlaylists': {'uploads': 'UUabcdefghijklmnopqrstuv'}}
            }]},
            status=200
        )

        channels = VideoSource('k' * 39, CHANNEL_ID).fetch_channel()

        assert len(channels) == 1
        channel = channels[0]
        assert channel.title == 'Dev Channel'
        assert channel.subscriber_count == 1200
        assert channel.view_count == 50000
        assert channel.video_count == 100
        assert channel.average_views_per_video == 500
        assert channel.published_at == datetime(2015, 6, 1, 12, 0, 0)
        assert channel.uploads_playlist_id == 'UUabcdefghijklmnopqrstuv'
        assert not channel.subscriber_count_hidden
        assert 'part=snippet%2Cstatistics%2CcontentDetails' in responses.calls[0].request.url

    @responses.activate
    def test_fetch_channel_hidden_subscribers(self):
        """Test a hidden subscriber count is flagged and reported as zero."""
        responses.add(
            responses.GET,
            f"{API}/channels",
            json={'items': [{
                'id': CHANNEL_ID,
                'snippet': {'title': 'Quiet Channel'},
                'statistics': {'viewCount': '10', 'hiddenSubscriberCount': True, 'videoCount': '0'}
            }]},
            status=200
        )

        channel = VideoSource('k' * 39, CHANNEL_ID).fetch_channel()[0]

        assert channel.subscriber_count_hidden
        assert channel.subscriber_count == 0
        assert channel.average_views_per_video == 0


class TestParseTimestamp:
    """Test RFC 3339 timestamp parsing."""

    def test_zulu(self):
        """Test a Z suffix is treated as UTC."""
        assert parse_timestamp('2024-03-01T15:00:00Z') == datetime(2024, 3, 1, 15, 0, 0)

    def test_offset_converted(self):
        """Test offsets are converted to naive UTC."""
        assert parse_timestamp('2024-03-01T15:00:00-05:00') == datetime(2024, 3, 1, 20, 0, 0)

    @pytest.mark.parametrize('value', [None, '', 'not a date', '0001-01-01T00:00:00+01:00'])
    def test_invalid(self, value):
        """Test missing or invalid values give None."""
        assert parse_timestamp(value) is None
