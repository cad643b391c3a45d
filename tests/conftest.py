"""
Shared fixtures for the inbox insights test suite.

Provides sample messages and a scripted completion client that returns
queued responses in order, so stage and pipeline tests never touch a real
provider.
"""

import json
import time
from types import SimpleNamespace
from typing import Any, List

import pytest

from inbox_insights.email_processing.models import EmailMessage


def make_completion(content: Any) -> SimpleNamespace:
    """Build an object shaped like an SDK chat completion."""
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))]
    )


class ScriptedClient:
    """
    Completion client returning queued responses in call order.

    Queue entries may be dicts (serialized to JSON text), strings, or
    exceptions (raised from the call).
    """

    def __init__(self, *responses: Any):
        self.responses: List[Any] = list(responses)
        self.calls: List[dict] = []

    async def complete(self, prompt, *, model, temperature, max_tokens=None):
        self.calls.append({
            "prompt": prompt,
            "model": model,
            "temperature": temperature,
            "max_tokens": max_tokens,
        })
        if not self.responses:
            raise AssertionError("ScriptedClient ran out of responses")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, (dict, list)):
            response = json.dumps(response)
        return make_completion(response)


@pytest.fixture
def now_ms():
    return int(time.time() * 1000)


@pytest.fixture
def sample_message(now_ms):
    """
    Unread billing email received now.

    Returns:
        EmailMessage: Normalized message as produced by the Gmail adapter
    """
    return EmailMessage(
        id="msg-1",
        thread_id="thread-1",
        subject="Invoice due",
        sender="billing@bigco.com",
        date="Mon, 3 Mar 2025 10:00:00 +0000",
        timestamp=now_ms,
        snippet="Please pay by Friday",
        is_read=False,
        link="https://mail.google.com/mail/u/0/#inbox/msg-1",
    )


@pytest.fixture
def upwork_message_factory():
    """Factory for vendor notification messages at a given epoch-ms timestamp."""
    counter = {"n": 0}

    def factory(timestamp: int, sender: str = "Upwork <donotreply@upwork.com>",
                subject: str = "New job: React developer needed") -> EmailMessage:
        counter["n"] += 1
        return EmailMessage(
            id=f"upwork-{counter['n']}",
            thread_id=f"upwork-thread-{counter['n']}",
            subject=subject,
            sender=sender,
            date="Tue, 4 Mar 2025 12:00:00 +0530",
            timestamp=timestamp,
            snippet="Looking for a Next.js developer with AI integration experience",
            is_read=True,
            link=f"https://mail.google.com/mail/u/0/#inbox/upwork-{counter['n']}",
        )

    return factory


@pytest.fixture
def scripted_client():
    return ScriptedClient
