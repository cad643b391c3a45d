"""
Selection of vendor notifications and their reduction to prompt input.
"""

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

from inbox_insights.config.analyzer_config import ANALYZER_CONFIG
from inbox_insights.email_processing.models import EmailMessage

logger = logging.getLogger(__name__)


def filter_vendor_emails(
    messages: Iterable[EmailMessage],
    domains: Optional[Sequence[str]] = None
) -> List[EmailMessage]:
    """
    Keep messages whose sender contains one of the vendor domain markers.

    Matching is a case-insensitive substring test against the raw sender
    header, so display names such as "Upwork Notification" match too.
    """
    markers = [d.lower() for d in (domains or ANALYZER_CONFIG["market_analysis"]["vendor_domains"])]
    matched = [
        message for message in messages
        if any(marker in message.sender.lower() for marker in markers)
    ]
    logger.info(f"Found {len(matched)} vendor emails")
    return matched


def filter_by_date_range(
    messages: Iterable[EmailMessage],
    start: datetime,
    end: datetime
) -> List[EmailMessage]:
    """Keep messages received within ``[start, end]``, both bounds inclusive."""
    start_ms = int(start.timestamp() * 1000)
    end_ms = int(end.timestamp() * 1000)
    selected = [m for m in messages if start_ms <= m.timestamp <= end_ms]
    logger.info(f"{len(selected)} emails between {start.isoformat()} and {end.isoformat()}")
    return selected


def format_for_analysis(messages: Iterable[EmailMessage]) -> List[Dict[str, str]]:
    return [
        {
            "subject": message.subject,
            "from": message.sender,
            "content": message.snippet,
            "date": message.date,
        }
        for message in messages
    ]
