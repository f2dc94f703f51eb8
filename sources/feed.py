"""Blog feed source (RSS or Atom)."""
import logging
import re
from datetime import datetime
from typing import List, Optional, Tuple

import feedparser
import requests
from bs4 import BeautifulSoup

from processor.errors import SourceError
from processor.models import BlogPost

logger = logging.getLogger(__name__)


class FeedSource:
    """Fetches and parses blog posts from an RSS or Atom feed."""

    NAME = 'blog'

    YOUTUBE_PATTERNS = (
        re.compile(r'https://www\.youtube\.com/watch\?v=[a-zA-Z0-9_-]+'),
        re.compile(r'https://youtu\.be/[a-zA-Z0-9_-]+'),
        re.compile(r'(?:https?://)?(?:www\.)?youtube\.com/embed/[a-zA-Z0-9_-]+'),
    )

    # Tagged onto posts whose feed entries carry no categories
    TECH_TERMS = (
        'spring', 'java', 'boot', 'ai', 'graphql', 'react', 'vue', 'docker',
        'kubernetes', 'microservices', 'rest', 'api', 'jwt', 'security',
        'testing', 'junit', 'maven', 'gradle', 'git', 'devops', 'cloud',
        'aws', 'azure', 'gcp', 'database', 'sql', 'nosql', 'mongodb',
        'redis', 'elasticsearch', 'kafka', 'rabbitmq', 'jpa', 'hibernate',
    )

    def __init__(self, feed_url: str, site_url: Optional[str] = None, timeout: int = 30):
        """
        Initialize the feed source.

        Args:
            feed_url: URL of the RSS or Atom feed
            site_url: Base URL for resolving relative post links
            timeout: HTTP request timeout in seconds (default: 30)
        """
        self.feed_url = feed_url
        self.site_url = site_url
        self.timeout = timeout

    def fetch_snapshot(self) -> List[BlogPost]:
        """
        Fetch the feed and convert its entries to posts.

        Returns:
            Posts in feed order

        Raises:
            SourceError: If the feed cannot be downloaded or parsed
        """
        logger.info(f"Fetching blog feed from {self.feed_url}")

        try:
            response = requests.get(self.feed_url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise SourceError(self.NAME, f"failed to download feed: {e}") from e

        feed = feedparser.parse(response.content)
        if feed.bozo and not feed.entries:
            raise SourceError(
                self.NAME, f"failed to parse feed: {feed.get('bozo_exception')}"
            )

        posts = []
        for entry in feed.entries:
            try:
                posts.append(self._entry_to_post(entry))
            except Exception as e:
                logger.warning(f"Failed to convert feed entry to post: {e}")
                continue

        logger.info(f"Parsed {len(posts)} posts from blog feed")
        return posts

    def _entry_to_post(self, entry) -> BlogPost:
        title = entry.get('title', '')
        raw_description = entry.get('summary', '') or entry.get('description', '')
        content_html = ' '.join(
            part.get('value', '') for part in entry.get('content', [])
        )
        description = html_to_text(raw_description)

        return BlogPost(
            title=title,
            link=entry.get('link', ''),
            guid=entry.get('id', '') or entry.get('link', ''),
            description=description,
            published_at=self._published_at(entry),
            author=entry.get('author'),
            tags=self._tags(entry, title, description),
            youtube_video_url=self.extract_youtube_url(raw_description + ' ' + content_html),
            site_url=self.site_url,
        )

    def _published_at(self, entry) -> Optional[datetime]:
        parsed = entry.get('published_parsed') or entry.get('updated_parsed')
        if not parsed:
            return None
        # feedparser normalizes to a UTC struct_time
        return datetime(*parsed[:6])

    def _tags(self, entry, title: str, description: str) -> Tuple[str, ...]:
        categories = tuple(
            tag.get('term', '').strip().lower()
            for tag in entry.get('tags', [])
            if tag.get('term', '').strip()
        )
        if categories:
            return categories
        return self.extract_tags(title, description)

    @classmethod
    def extract_tags(cls, title: str, description: str) -> Tuple[str, ...]:
        """Known technical terms mentioned in the title or description."""
        content = f"{title or ''} {description or ''}".lower()
        return tuple(term for term in cls.TECH_TERMS if term in content)

    @classmethod
    def extract_youtube_url(cls, content: str) -> Optional[str]:
        """First YouTube video link found in the content, if any."""
        if not content:
            return None
        for pattern in cls.YOUTUBE_PATTERNS:
            match = pattern.search(content)
            if match:
                return match.group(0)
        return None


def html_to_text(markup: str) -> str:
    """Strip tags from an HTML fragment, collapsing whitespace."""
    if not markup:
        return ''
    text = BeautifulSoup(markup, 'html.parser').get_text(' ', strip=True)
    return ' '.join(text.split())
