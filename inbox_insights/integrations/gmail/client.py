"""
Gmail Client Implementation

Async facade over the synchronous Gmail API client. Listing and detail
fetches run in a worker thread; the details for one listing page are
requested together through a Gmail batch HTTP request and normalized into
EmailMessage records in listing order.

Design Considerations:
- The client must be initialized before any fetch
- A failed listing ends the fetch with AdapterError
- A failed detail fetch only drops that message
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from inbox_insights.config.analyzer_config import ANALYZER_CONFIG
from inbox_insights.email_processing.handlers.date_service import EmailDateService
from inbox_insights.email_processing.models import EmailMessage
from inbox_insights.errors import AdapterError, MailboxAuthError, MailboxNotInitializedError

from .auth_manager import GmailAuthenticationManager

logger = logging.getLogger(__name__)

_DETAIL_HEADERS = ['Subject', 'From', 'Date']


class GmailClient:
    """
    Gmail API client producing normalized messages.

    Attributes:
        auth_manager: Authentication manager used by initialize()
        service: Authenticated Gmail API service, None until initialized
        batch_size: Maximum detail requests per batch HTTP request
    """

    def __init__(
        self,
        auth_manager: Optional[GmailAuthenticationManager] = None,
        batch_size: Optional[int] = None,
        date_service: type = EmailDateService
    ):
        self.auth_manager = auth_manager or GmailAuthenticationManager()
        self.batch_size = batch_size or ANALYZER_CONFIG["mailbox"]["batch_request_size"]
        self.link_template = ANALYZER_CONFIG["mailbox"]["link_template"]
        self.date_service = date_service
        self.service: Optional[Any] = None

    async def initialize(self) -> None:
        """
        Authenticate and build the Gmail service. Idempotent.

        Raises:
            MailboxAuthError: If no valid credentials could be obtained
        """
        if self.service is not None:
            return

        service = await asyncio.to_thread(self.auth_manager.create_gmail_service)
        if not service:
            raise MailboxAuthError("Failed to initialize Gmail service")

        self.service = service
        logger.info("Gmail API initialized successfully")

    async def fetch_recent_messages(self, max_results: int = 10) -> List[EmailMessage]:
        """
        List the most recent messages and fetch their details.

        Args:
            max_results: Maximum number of messages to list

        Returns:
            Normalized messages in listing order

        Raises:
            MailboxNotInitializedError: If initialize() has not succeeded
            AdapterError: If the listing or batch request fails
        """
        if self.service is None:
            raise MailboxNotInitializedError()

        try:
            listing = await asyncio.to_thread(self._list_messages, max_results)
            message_ids = [ref['id'] for ref in listing.get('messages', []) if ref.get('id')]
            if not message_ids:
                logger.info("No messages returned by listing")
                return []

            raw_messages = await asyncio.to_thread(self._fetch_details, message_ids)

        except Exception as e:
            logger.error(f"Error fetching emails: {str(e)}")
            raise AdapterError(f"Error fetching emails: {str(e)}") from e

        messages = [self._normalize(raw) for raw in raw_messages]
        logger.info(f"Fetched {len(messages)} of {len(message_ids)} listed messages")
        return messages

    def _list_messages(self, max_results: int) -> Dict:
        return self.service.users().messages().list(
            userId='me',
            maxResults=max_results
        ).execute()

    def _fetch_details(self, message_ids: List[str]) -> List[Dict]:
        """Fetch message metadata in batch requests, preserving listing order."""
        responses: Dict[str, Dict] = {}

        def on_response(request_id: str, response: Dict, exception: Optional[Exception]):
            if exception is not None:
                logger.error(f"Error fetching message {message_ids[int(request_id)]}: {exception}")
                return
            responses[request_id] = response

        for start in range(0, len(message_ids), self.batch_size):
            batch = self.service.new_batch_http_request(callback=on_response)
            for index in range(start, min(start + self.batch_size, len(message_ids))):
                batch.add(
                    self.service.users().messages().get(
                        userId='me',
                        id=message_ids[index],
                        format='metadata',
                        metadataHeaders=_DETAIL_HEADERS
                    ),
                    request_id=str(index)
                )
            batch.execute()

        return [responses[str(i)] for i in range(len(message_ids)) if str(i) in responses]

    def _get_header(self, headers: List[Dict], name: str, default: str = '') -> str:
        wanted = name.lower()
        return next(
            (h.get('value') or default for h in headers if str(h.get('name', '')).lower() == wanted),
            default
        )

    def _normalize(self, raw: Dict) -> EmailMessage:
        """
        Convert a Gmail API message into an EmailMessage.

        Missing ids get time-based placeholders, the unread flag comes from
        the UNREAD label, and the timestamp is taken from the Date header,
        then Gmail's internalDate, then the current time.
        """
        now_ms = int(time.time() * 1000)
        headers = (raw.get('payload') or {}).get('headers') or []

        message_id = raw.get('id') or f"unknown_{now_ms}"
        thread_id = raw.get('threadId') or f"thread_{now_ms}"

        date_header = self._get_header(headers, 'Date')
        internal_date = raw.get('internalDate')
        fallback_ms = int(internal_date) if str(internal_date or '').isdigit() else now_ms
        timestamp = self.date_service.to_epoch_millis(date_header, fallback_ms=fallback_ms)

        return EmailMessage(
            id=message_id,
            thread_id=thread_id,
            subject=self._get_header(headers, 'Subject', 'No Subject'),
            sender=self._get_header(headers, 'From', 'Unknown Sender'),
            date=date_header or datetime.now(timezone.utc).isoformat(),
            timestamp=timestamp,
            snippet=raw.get('snippet') or '',
            is_read='UNREAD' not in (raw.get('labelIds') or []),
            link=self.link_template.format(id=message_id),
        )
