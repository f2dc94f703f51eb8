"""AWS Lambda handler serving cached blog, speaking and video views."""
import dataclasses
import json
import logging
import os
import time
from datetime import date, datetime
from typing import Any, Callable, Dict, Mapping, Optional

from processor.errors import ConfigurationError, ValidationError
from processor.models import SearchResult
from processor.params import parse_count, parse_year
from processor.services import BlogService, ContentService, SpeakingService, VideoService
from settings import BlogSettings, HubSettings, SpeakingSettings, YouTubeSettings
from sources.engagements import EngagementSource
from sources.feed import FeedSource
from sources.videos import VideoSource
from storage.snapshot_cache import SnapshotCache


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        for key in ('source', 'action', 'error_type', 'duration_seconds'):
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def build_services(
    hub: HubSettings,
    env: Mapping[str, str] = os.environ
) -> Dict[str, ContentService]:
    """
    Build the service for every domain whose configuration validates.

    A domain with no configuration is disabled silently; one with invalid
    configuration is logged and disabled without affecting the others.

    Args:
        hub: Process-wide settings (adapter timeout)
        env: Environment to read domain settings from

    Returns:
        Mapping of source name to service for the enabled domains
    """
    logger = logging.getLogger(__name__)
    builders: Dict[str, Callable[[], Optional[ContentService]]] = {
        FeedSource.NAME: lambda: _build_blog(BlogSettings.from_env(env), hub),
        EngagementSource.NAME: lambda: _build_speaking(SpeakingSettings.from_env(env), hub),
        VideoSource.NAME: lambda: _build_videos(YouTubeSettings.from_env(env), hub),
    }

    services = {}
    for name, build in builders.items():
        try:
            service = build()
        except ConfigurationError as e:
            logger.error(
                f"Invalid configuration, {name} integration disabled: {e}",
                extra={'source': name, 'error_type': type(e).__name__}
            )
            continue

        if service is None:
            logger.info(f"No configuration for {name}, integration disabled")
            continue

        services[name] = service
        logger.info(
            f"{name} integration enabled with {service.cache.ttl} cache duration",
            extra={'source': name}
        )

    return services


def _build_blog(settings: Optional[BlogSettings], hub: HubSettings) -> Optional[BlogService]:
    if settings is None:
        return None
    source = FeedSource(settings.rss_url, settings.site_url, timeout=hub.timeout_seconds)
    return BlogService(SnapshotCache(FeedSource.NAME, source.fetch_snapshot, settings.cache_duration))


def _build_speaking(settings: Optional[SpeakingSettings], hub: HubSettings) -> Optional[SpeakingService]:
    if settings is None:
        return None
    source = EngagementSource(settings.api_url, timeout=hub.timeout_seconds)
    return SpeakingService(
        SnapshotCache(EngagementSource.NAME, source.fetch_snapshot, settings.cache_duration)
    )


def _build_videos(settings: Optional[YouTubeSettings], hub: HubSettings) -> Optional[VideoService]:
    if settings is None:
        return None
    source = VideoSource(
        api_key=settings.api_key,
        channel_id=settings.channel_id,
        application_name=settings.application_name,
        max_videos=settings.max_videos,
        timeout=hub.timeout_seconds
    )
    return VideoService(
        SnapshotCache(VideoSource.NAME, source.fetch_snapshot, settings.cache_duration),
        channel_cache=SnapshotCache(
            f"{VideoSource.NAME}-channel", source.fetch_channel, settings.cache_duration
        )
    )


# Services live for the lifetime of the (warm) Lambda container
_services: Optional[Dict[str, ContentService]] = None


def get_services(hub: HubSettings) -> Dict[str, ContentService]:
    global _services
    if _services is None:
        _services = build_services(hub)
    return _services


def reset_services() -> None:
    """Drop the built services so the next invocation rebuilds them."""
    global _services
    _services = None


def _to_json_ready(value: Any) -> Any:
    if isinstance(value, SearchResult):
        return {
            'search_type': value.search_type,
            'criteria': value.criteria,
            'description': value.description,
            'total_matches': value.total_matches,
            'items': [_to_json_ready(item) for item in value.items],
        }
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        data = {
            f.name: _to_json_ready(getattr(value, f.name))
            for f in dataclasses.fields(value)
        }
        if hasattr(value, 'event_type'):
            data['event_type'] = value.event_type
        if hasattr(value, 'full_url'):
            data['full_url'] = value.full_url
        return data
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): _to_json_ready(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_json_ready(v) for v in value]
    return value


def dispatch(service: ContentService, action: str, event: Dict[str, Any]) -> Any:
    """
    Run one view on a service.

    Args:
        service: Service of the requested source
        action: View name (latest, search, date_range, stats, ...)
        event: Invocation payload holding the action parameters

    Returns:
        The view's result

    Raises:
        ValidationError: For unknown actions or invalid parameters
    """
    count = parse_count(event.get('count'))

    if action == 'latest':
        return service.latest(count)
    if action == 'search':
        return service.search(event.get('keyword'), count)
    if action == 'date_range':
        return service.by_date_range(event.get('date_range'), count)
    if action == 'year':
        return service.by_year(parse_year(event.get('year')), count)
    if action == 'stats':
        return service.stats()

    if isinstance(service, SpeakingService):
        if action == 'upcoming':
            return service.upcoming(count)
        if action == 'past':
            return service.past(count)
        if action == 'location':
            return service.by_location(event.get('location'), count)
        if action == 'event_type':
            return service.by_event_type(event.get('event_type'), count)
        if action == 'status':
            return service.by_status(event.get('status'), count)

    if isinstance(service, VideoService):
        if action == 'top':
            return service.top_videos(count)
        if action == 'channel':
            return service.channel()

    raise ValidationError(f"Unknown action '{action}' for source '{service.name}'")


def _response(status_code: int, body: Dict[str, Any], start_time: float) -> Dict[str, Any]:
    body['duration_seconds'] = round(time.time() - start_time, 2)
    return {
        'statusCode': status_code,
        'body': json.dumps(body)
    }


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Main Lambda handler serving content views.

    Args:
        event: Payload with 'source', 'action' and action parameters
        context: Lambda context object

    Returns:
        Response dict with statusCode and JSON body
    """
    start_time = time.time()
    source = ''
    action = ''

    setup_logging(os.environ.get('LOG_LEVEL', 'INFO'))
    logger = logging.getLogger(__name__)
    logger.info("Lambda execution started")

    try:
        if event is None:
            event = {}
        if not isinstance(event, dict):
            raise ValidationError(f"Event must be a JSON object, got {type(event).__name__}")

        source = str(event.get('source') or '').strip()
        action = str(event.get('action') or '').strip()

        hub = HubSettings.from_env()
        services = get_services(hub)

        if not source or not action:
            raise ValidationError("Both 'source' and 'action' are required")

        service = services.get(source)
        if service is None:
            logger.warning(f"Request for disabled source: {source}")
            return _response(404, {
                'message': f"Source '{source}' is not enabled",
                'enabled_sources': sorted(services)
            }, start_time)

        result = dispatch(service, action, event)

        logger.info(
            "Lambda execution completed successfully",
            extra={
                'source': source,
                'action': action,
                'duration_seconds': round(time.time() - start_time, 2)
            }
        )
        return _response(200, {
            'message': 'OK',
            'source': source,
            'action': action,
            'result': _to_json_ready(result)
        }, start_time)

    except ValidationError as e:
        logger.warning(f"Rejected request: {e}", extra={'source': source, 'action': action})
        return _response(400, {
            'message': 'Invalid request',
            'error': str(e)
        }, start_time)

    except Exception as e:
        logger.error(
            f"Lambda execution failed: {str(e)}",
            extra={'error_type': type(e).__name__},
            exc_info=True
        )
        return _response(500, {
            'message': 'Request failed',
            'error': str(e),
            'error_type': type(e).__name__
        }, start_time)
