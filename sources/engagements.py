"""Speaking engagements source backed by a JSON endpoint."""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests

from processor.errors import SourceError
from processor.models import SpeakingEngagement

logger = logging.getLogger(__name__)


class EngagementSource:
    """Fetches speaking engagements from an HTTP JSON API."""

    NAME = 'speaking'

    DATE_FORMATS = [
        '%Y-%m-%dT%H:%M:%S',   # ISO 8601 local date-time
        '%Y-%m-%d %H:%M:%S',   # SQL style
        '%Y-%m-%dT%H:%M',      # ISO 8601 without seconds
        '%Y-%m-%d',            # ISO 8601 date
        '%m/%d/%Y',            # US format
        '%d/%m/%Y',            # European format
        '%B %d, %Y',           # Full month name
    ]

    def __init__(self, api_url: str, timeout: int = 30):
        """
        Initialize the engagement source.

        Args:
            api_url: Endpoint returning a JSON array of engagements
            timeout: HTTP request timeout in seconds (default: 30)
        """
        self.api_url = api_url
        self.timeout = timeout

    def fetch_snapshot(self) -> List[SpeakingEngagement]:
        """
        Fetch all engagements from the API.

        Returns:
            Engagements in API order

        Raises:
            SourceError: On network errors, non-200 responses or a body
                that is not a JSON array
        """
        logger.info(f"Fetching speaking engagements from {self.api_url}")

        try:
            response = requests.get(
                self.api_url,
                headers={'Accept': 'application/json'},
                timeout=self.timeout
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise SourceError(self.NAME, f"request failed: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise SourceError(self.NAME, f"response is not valid JSON: {e}") from e

        if not isinstance(payload, list):
            raise SourceError(
                self.NAME, f"expected a JSON array, got {type(payload).__name__}"
            )

        engagements = []
        for item in payload:
            if not isinstance(item, dict):
                logger.warning(f"Skipping non-object engagement entry: {item!r}")
                continue
            engagements.append(self._item_to_engagement(item))

        logger.info(f"Parsed {len(engagements)} speaking engagements")
        return engagements

    def _item_to_engagement(self, item: Dict[str, Any]) -> SpeakingEngagement:
        return SpeakingEngagement(
            title=_text(item.get('title')) or '',
            url=_text(item.get('url')),
            name=_text(item.get('name')),
            start_date=self.parse_datetime(item.get('startDate')),
            end_date=self.parse_datetime(item.get('endDate')),
            location=_text(item.get('location')),
            description=_text(item.get('description')),
        )

    def parse_datetime(self, value: Optional[str]) -> Optional[datetime]:
        """
        Parse a date-time string in any of the supported formats.

        Args:
            value: Date or date-time text from the API

        Returns:
            Naive UTC datetime, or None if the value is empty or unparseable
        """
        if not value or not isinstance(value, str) or not value.strip():
            return None

        text = value.strip()

        try:
            parsed = datetime.fromisoformat(text.replace('Z', '+00:00'))
        except ValueError:
            parsed = None

        if parsed is None:
            for fmt in self.DATE_FORMATS:
                try:
                    parsed = datetime.strptime(text, fmt)
                    break
                except ValueError:
                    continue

        if parsed is None:
            logger.warning(f"Could not parse date: {text}")
            return None

        if parsed.tzinfo is not None:
            try:
                parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
            except OverflowError:
                logger.warning(f"Date out of range after UTC conversion: {text}")
                return None
        return parsed


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)
