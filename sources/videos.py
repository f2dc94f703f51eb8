"""Video catalog source backed by the YouTube Data API v3."""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests

from processor.errors import SourceError
from processor.models import Channel, Video

logger = logging.getLogger(__name__)


class VideoSource:
    """Fetches a channel's uploads together with their statistics."""

    NAME = 'youtube'

    API_URL = "https://www.googleapis.com/youtube/v3"
    WATCH_URL = "https://www.youtube.com/watch?v="
    PAGE_SIZE = 50  # YouTube API maximum per request

    def __init__(
        self,
        api_key: str,
        channel_id: str,
        application_name: str = 'content-hub',
        max_videos: int = 50,
        timeout: int = 30
    ):
        """
        Initialize the video source.

        Args:
            api_key: YouTube Data API key
            channel_id: Channel whose uploads are fetched
            application_name: Sent as the User-Agent of API requests
            max_videos: Maximum number of uploads fetched per snapshot
            timeout: HTTP request timeout in seconds (default: 30)
        """
        self.api_key = api_key
        self.channel_id = channel_id
        self.application_name = application_name
        self.max_videos = max_videos
        self.timeout = timeout

    def fetch_snapshot(self) -> List[Video]:
        """
        Fetch the most recent uploads of the channel.

        Returns:
            Videos in upload playlist order (newest first), with view, like
            and comment counts

        Raises:
            SourceError: If any API request fails or the channel is unknown
        """
        logger.info(f"Fetching videos for channel {self.channel_id}")

        channel = self._channel()
        if not channel.uploads_playlist_id:
            raise SourceError(self.NAME, f"channel has no uploads playlist: {self.channel_id}")

        playlist_items = self._playlist_items(channel.uploads_playlist_id)
        statistics = self._video_details([item['video_id'] for item in playlist_items])

        videos = []
        for item in playlist_items:
            details = statistics.get(item['video_id'], {})
            stats = details.get('statistics', {})
            videos.append(Video(
                video_id=item['video_id'],
                title=item['title'],
                url=self.WATCH_URL + item['video_id'],
                published_at=item['published_at'],
                view_count=_count(stats.get('viewCount')),
                like_count=_count(stats.get('likeCount')),
                comment_count=_count(stats.get('commentCount')),
                description=item['description'],
                duration=details.get('contentDetails', {}).get('duration'),
                thumbnail_url=item['thumbnail_url'],
            ))

        logger.info(f"Fetched {len(videos)} videos for channel {self.channel_id}")
        return videos

    def fetch_channel(self) -> List[Channel]:
        """
        Fetch the channel's profile and lifetime statistics.

        Returns:
            A single-item list holding the channel

        Raises:
            SourceError: If the API request fails or the channel is unknown
        """
        logger.info(f"Fetching channel statistics for {self.channel_id}")
        return [self._channel()]

    def _get(self, resource: str, params: Dict[str, Any]) -> Dict[str, Any]:
        query = dict(params, key=self.api_key)
        try:
            response = requests.get(
                f"{self.API_URL}/{resource}",
                params=query,
                headers={'User-Agent': self.application_name},
                timeout=self.timeout
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise SourceError(self.NAME, f"{resource} request failed: {e}") from e

        try:
            return response.json()
        except ValueError as e:
            raise SourceError(self.NAME, f"{resource} response is not valid JSON: {e}") from e

    def _channel(self) -> Channel:
        data = self._get('channels', {
            'part': 'snippet,statistics,contentDetails',
            'id': self.channel_id,
        })
        items = data.get('items') or []
        if not items:
            raise SourceError(self.NAME, f"channel not found: {self.channel_id}")
        return self._parse_channel(items[0])

    def _parse_channel(self, item: Dict[str, Any]) -> Channel:
        snippet = item.get('snippet', {})
        stats = item.get('statistics', {})
        return Channel(
            channel_id=item.get('id') or self.channel_id,
            title=snippet.get('title', ''),
            description=snippet.get('description', ''),
            subscriber_count=_count(stats.get('subscriberCount')),
            view_count=_count(stats.get('viewCount')),
            video_count=_count(stats.get('videoCount')),
            published_at=parse_timestamp(snippet.get('publishedAt')),
            subscriber_count_hidden=bool(stats.get('hiddenSubscriberCount', False)),
            uploads_playlist_id=(
                item.get('contentDetails', {}).get('relatedPlaylists', {}).get('uploads')
            ),
        )

    def _playlist_items(self, playlist_id: str) -> List[Dict[str, Any]]:
        results = []
        page_token = None

        while len(results) < self.max_videos:
            params = {
                'part': 'snippet,contentDetails',
                'playlistId': playlist_id,
                'maxResults': min(self.PAGE_SIZE, self.max_videos - len(results)),
            }
            if page_token:
                params['pageToken'] = page_token

            data = self._get('playlistItems', params)
            for item in data.get('items', []):
                parsed = self._parse_playlist_item(item)
                if parsed:
                    results.append(parsed)

            page_token = data.get('nextPageToken')
            if not page_token:
                break

        return results[:self.max_videos]

    def _parse_playlist_item(self, item: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        snippet = item.get('snippet', {})
        video_id = snippet.get('resourceId', {}).get('videoId')
        if not video_id:
            logger.warning(f"Skipping playlist item without video id: {item.get('id')}")
            return None

        published = (
            item.get('contentDetails', {}).get('videoPublishedAt')
            or snippet.get('publishedAt')
        )
        thumbnails = snippet.get('thumbnails', {})
        thumbnail = thumbnails.get('high') or thumbnails.get('default') or {}

        return {
            'video_id': video_id,
            'title': snippet.get('title', ''),
            'description': snippet.get('description', ''),
            'published_at': parse_timestamp(published),
            'thumbnail_url': thumbnail.get('url'),
        }

    def _video_details(self, video_ids: List[str]) -> Dict[str, Dict[str, Any]]:
        details = {}
        for i in range(0, len(video_ids), self.PAGE_SIZE):
            batch = video_ids[i:i + self.PAGE_SIZE]
            data = self._get('videos', {
                'part': 'statistics,contentDetails',
                'id': ','.join(batch),
            })
            for item in data.get('items', []):
                details[item.get('id')] = item
        return details


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp from the API into a naive UTC datetime."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        logger.warning(f"Failed to parse datetime: {value}")
        return None
    if parsed.tzinfo is not None:
        try:
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
        except OverflowError:
            logger.warning(f"Datetime out of range after UTC conversion: {value}")
            return None
    return parsed


def _count(value: Any) -> int:
    # Statistics arrive as strings and are omitted when hidden
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0
