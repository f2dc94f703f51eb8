"""Configuration read from environment variables."""
import os
import re
from dataclasses import dataclass
from datetime import timedelta
from typing import Mapping, Optional

from processor.errors import ConfigurationError

DEFAULT_CACHE_MINUTES = 30
MIN_CACHE_MINUTES = 1
MAX_CACHE_MINUTES = 7 * 24 * 60

URL_PATTERN = re.compile(r'^https?://.+')
CHANNEL_ID_PATTERN = re.compile(r'^(UC|UU|HC)[a-zA-Z0-9_-]{22}$')


def _cache_minutes(env: Mapping[str, str], name: str, label: str) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return DEFAULT_CACHE_MINUTES
    try:
        return int(raw.strip())
    except ValueError:
        raise ConfigurationError(f"{label} cache duration must be a whole number of minutes, got: {raw!r}")


def _check_cache_minutes(minutes: int, label: str) -> None:
    if minutes < MIN_CACHE_MINUTES:
        raise ConfigurationError(
            f"{label} cache duration must be at least 1 minute, got: {minutes}"
        )
    if minutes > MAX_CACHE_MINUTES:
        raise ConfigurationError(
            f"{label} cache duration must be at most {MAX_CACHE_MINUTES} minutes (one week), got: {minutes}"
        )


def _check_url(url: str, label: str) -> None:
    if not url or not url.strip():
        raise ConfigurationError(f"{label} URL must not be blank")
    if not URL_PATTERN.match(url.strip()):
        raise ConfigurationError(f"{label} URL must start with http:// or https://, got: {url!r}")


def _is_set(env: Mapping[str, str], name: str) -> bool:
    value = env.get(name)
    return value is not None and bool(value.strip())


@dataclass(frozen=True)
class BlogSettings:
    """Blog feed integration."""
    rss_url: str
    site_url: Optional[str] = None
    cache_minutes: int = DEFAULT_CACHE_MINUTES

    def __post_init__(self):
        _check_url(self.rss_url, 'Blog RSS')
        _check_cache_minutes(self.cache_minutes, 'Blog')

    @property
    def cache_duration(self) -> timedelta:
        return timedelta(minutes=self.cache_minutes)

    @classmethod
    def from_env(cls, env: Mapping[str, str] = os.environ) -> Optional['BlogSettings']:
        """Blog settings, or None when BLOG_RSS_URL is not set."""
        if not _is_set(env, 'BLOG_RSS_URL'):
            return None
        return cls(
            rss_url=env['BLOG_RSS_URL'].strip(),
            site_url=(env.get('BLOG_SITE_URL') or '').strip() or None,
            cache_minutes=_cache_minutes(env, 'BLOG_CACHE_MINUTES', 'Blog'),
        )


@dataclass(frozen=True)
class SpeakingSettings:
    """Speaking engagements API integration."""
    api_url: str
    cache_minutes: int = DEFAULT_CACHE_MINUTES

    def __post_init__(self):
        _check_url(self.api_url, 'Speaking API')
        _check_cache_minutes(self.cache_minutes, 'Speaking')

    @property
    def cache_duration(self) -> timedelta:
        return timedelta(minutes=self.cache_minutes)

    @classmethod
    def from_env(cls, env: Mapping[str, str] = os.environ) -> Optional['SpeakingSettings']:
        """Speaking settings, or None when SPEAKING_API_URL is not set."""
        if not _is_set(env, 'SPEAKING_API_URL'):
            return None
        return cls(
            api_url=env['SPEAKING_API_URL'].strip(),
            cache_minutes=_cache_minutes(env, 'SPEAKING_CACHE_MINUTES', 'Speaking'),
        )


@dataclass(frozen=True)
class YouTubeSettings:
    """YouTube Data API integration."""
    api_key: str
    channel_id: str
    application_name: str = 'content-hub'
    cache_minutes: int = DEFAULT_CACHE_MINUTES
    max_videos: int = 50

    def __post_init__(self):
        if not self.api_key or not self.api_key.strip():
            raise ConfigurationError("YouTube API key must not be blank")
        if not 10 <= len(self.api_key) <= 100:
            raise ConfigurationError(
                f"YouTube API key length seems invalid. Expected 10-100 characters, "
                f"got: {len(self.api_key)}"
            )
        if not CHANNEL_ID_PATTERN.match(self.channel_id or ''):
            raise ConfigurationError(
                "YouTube channel ID must be a valid format "
                "(24 characters starting with UC, UU, or HC)"
            )
        if not self.application_name or not self.application_name.strip():
            raise ConfigurationError("YouTube application name must not be blank")
        if self.max_videos < 1:
            raise ConfigurationError(f"YouTube max videos must be positive, got: {self.max_videos}")
        _check_cache_minutes(self.cache_minutes, 'YouTube')

    @property
    def cache_duration(self) -> timedelta:
        return timedelta(minutes=self.cache_minutes)

    @classmethod
    def from_env(cls, env: Mapping[str, str] = os.environ) -> Optional['YouTubeSettings']:
        """YouTube settings, or None unless both API key and channel ID are set."""
        if not (_is_set(env, 'YOUTUBE_API_KEY') and _is_set(env, 'YOUTUBE_CHANNEL_ID')):
            return None

        max_videos = (env.get('YOUTUBE_MAX_VIDEOS') or '50').strip()
        try:
            max_videos = int(max_videos)
        except ValueError:
            raise ConfigurationError(f"YouTube max videos must be a number, got: {max_videos!r}")

        return cls(
            api_key=env['YOUTUBE_API_KEY'].strip(),
            channel_id=env['YOUTUBE_CHANNEL_ID'].strip(),
            application_name=(env.get('YOUTUBE_APPLICATION_NAME') or '').strip() or 'content-hub',
            cache_minutes=_cache_minutes(env, 'YOUTUBE_CACHE_MINUTES', 'YouTube'),
            max_videos=max_videos,
        )


@dataclass(frozen=True)
class HubSettings:
    """Process-wide settings. LOG_LEVEL is read by the handler before these are loaded."""
    timeout_seconds: int = 30

    @classmethod
    def from_env(cls, env: Mapping[str, str] = os.environ) -> 'HubSettings':
        timeout = (env.get('TIMEOUT_SECONDS') or '30').strip()
        try:
            timeout_seconds = int(timeout)
        except ValueError:
            raise ConfigurationError(f"TIMEOUT_SECONDS must be a number, got: {timeout!r}")
        return cls(timeout_seconds=timeout_seconds)
