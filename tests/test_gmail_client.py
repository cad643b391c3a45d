"""
Tests for the Gmail client: initialization guard, batch detail fetching and
message normalization. The Gmail API service is replaced by an in-memory
fake that mimics the discovery client's call chain.
"""

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from inbox_insights.errors import AdapterError, MailboxAuthError, MailboxNotInitializedError
from inbox_insights.integrations.gmail import GmailClient


class FakeBatch:
    def __init__(self, callback, details, failures):
        self.callback = callback
        self.details = details
        self.failures = failures
        self.items = []

    def add(self, request, request_id):
        self.items.append((request_id, request))

    def execute(self):
        for request_id, request in self.items:
            if request.msg_id in self.failures:
                self.callback(request_id, None, RuntimeError("404 not found"))
            else:
                self.callback(request_id, self.details[request.msg_id], None)


class FakeMessages:
    def __init__(self, listing, list_error=None):
        self.listing = listing
        self.list_error = list_error
        self.list_kwargs = None

    def list(self, **kwargs):
        self.list_kwargs = kwargs

        def execute():
            if self.list_error is not None:
                raise self.list_error
            return self.listing

        return SimpleNamespace(execute=execute)

    def get(self, userId, id, format, metadataHeaders):
        return SimpleNamespace(msg_id=id, format=format)


class FakeService:
    def __init__(self, details, failures=(), list_error=None):
        listing = {"messages": [{"id": msg_id} for msg_id in details]} if details else {}
        self.details = details
        self.failures = set(failures)
        self.messages = FakeMessages(listing, list_error)
        self.batches = []

    def users(self):
        return SimpleNamespace(messages=lambda: self.messages)

    def new_batch_http_request(self, callback):
        batch = FakeBatch(callback, self.details, self.failures)
        self.batches.append(batch)
        return batch


def raw_message(msg_id="abc", headers=None, labels=("INBOX",), **extra):
    raw = {
        "id": msg_id,
        "threadId": f"t-{msg_id}",
        "snippet": f"snippet {msg_id}",
        "labelIds": list(labels),
        "payload": {"headers": headers if headers is not None else [
            {"name": "Subject", "value": f"Subject {msg_id}"},
            {"name": "From", "value": "Alice <alice@example.com>"},
            {"name": "Date", "value": "Tue, 04 Mar 2025 12:00:00 +0000"},
        ]},
    }
    raw.update(extra)
    return raw


def client_with(service, batch_size=None):
    auth_manager = MagicMock()
    auth_manager.create_gmail_service.return_value = service
    return GmailClient(auth_manager=auth_manager, batch_size=batch_size)


class TestInitialization:
    @pytest.mark.asyncio
    async def test_fetch_before_initialize_fails(self):
        client = client_with(FakeService({}))
        with pytest.raises(MailboxNotInitializedError, match="Call initialize\\(\\) first"):
            await client.fetch_recent_messages(10)

    @pytest.mark.asyncio
    async def test_auth_failure_raises(self):
        client = client_with(None)
        with pytest.raises(MailboxAuthError):
            await client.initialize()

    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self):
        client = client_with(FakeService({}))
        await client.initialize()
        await client.initialize()
        client.auth_manager.create_gmail_service.assert_called_once()


class TestFetchRecentMessages:
    @pytest.mark.asyncio
    async def test_normalizes_messages_in_listing_order(self):
        service = FakeService({
            "m1": raw_message("m1", labels=("INBOX", "UNREAD")),
            "m2": raw_message("m2"),
        })
        client = client_with(service)
        await client.initialize()

        messages = await client.fetch_recent_messages(10)

        assert [m.id for m in messages] == ["m1", "m2"]
        first = messages[0]
        assert first.thread_id == "t-m1"
        assert first.subject == "Subject m1"
        assert first.sender == "Alice <alice@example.com>"
        assert first.is_read is False
        assert messages[1].is_read is True
        assert first.link == "https://mail.google.com/mail/u/0/#inbox/m1"
        assert first.timestamp == int(datetime(2025, 3, 4, 12, tzinfo=timezone.utc).timestamp() * 1000)
        assert service.messages.list_kwargs == {"userId": "me", "maxResults": 10}

    @pytest.mark.asyncio
    async def test_missing_fields_get_placeholders(self):
        raw = {"snippet": "", "payload": {"headers": []}, "internalDate": "1741089600000"}
        client = client_with(FakeService({"x": raw}))
        await client.initialize()

        [message] = await client.fetch_recent_messages(1)

        assert message.id.startswith("unknown_")
        assert message.thread_id.startswith("thread_")
        assert message.subject == "No Subject"
        assert message.sender == "Unknown Sender"
        assert message.timestamp == 1741089600000
        assert message.date
        assert message.is_read is True

    @pytest.mark.asyncio
    async def test_failed_detail_fetch_skips_message(self):
        service = FakeService(
            {"m1": raw_message("m1"), "m2": raw_message("m2"), "m3": raw_message("m3")},
            failures={"m2"},
        )
        client = client_with(service)
        await client.initialize()

        messages = await client.fetch_recent_messages(3)

        assert [m.id for m in messages] == ["m1", "m3"]

    @pytest.mark.asyncio
    async def test_details_chunked_into_batches(self):
        service = FakeService({f"m{i}": raw_message(f"m{i}") for i in range(5)})
        client = client_with(service, batch_size=2)
        await client.initialize()

        messages = await client.fetch_recent_messages(5)

        assert len(messages) == 5
        assert [len(b.items) for b in service.batches] == [2, 2, 1]

    @pytest.mark.asyncio
    async def test_empty_listing(self):
        client = client_with(FakeService({}))
        await client.initialize()
        assert await client.fetch_recent_messages(10) == []

    @pytest.mark.asyncio
    async def test_listing_failure_raises_adapter_error(self):
        client = client_with(FakeService({}, list_error=ConnectionError("dns failure")))
        await client.initialize()

        with pytest.raises(AdapterError) as exc_info:
            await client.fetch_recent_messages(10)
        assert isinstance(exc_info.value.__cause__, ConnectionError)
