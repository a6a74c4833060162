"""
Unit tests for the newsletter publication pipeline.

Runs against in-memory doubles of the idempotency store, the subscriber
query and the email provider.
"""

from uuid import uuid4

import pytest
from fastapi import Response

from newsletter.domain import Email
from newsletter.email_client import EmailDispatchError
from newsletter.services.idempotency import ReturnSavedResponse, StartProcessing
from newsletter.services.newsletters import (
    InvalidIdempotencyKeyError,
    NewsletterDeliveryError,
    NewsletterPublisher,
)
from newsletter.services.subscriptions import ConfirmedSubscriber


class FakeTransaction:
    def __init__(self):
        self.committed = False
        self.rolled_back = False

    async def commit(self):
        self.committed = True

    async def rollback(self):
        self.rolled_back = True


class FakeIdempotencyStore:
    """Keeps saved responses in a dict; a missing entry means start processing."""

    def __init__(self):
        self.saved: dict[tuple, Response] = {}
        self.transactions: list[FakeTransaction] = []

    async def try_processing(self, user_id, key):
        saved = self.saved.get((user_id, key.value))
        if saved is not None:
            return ReturnSavedResponse(saved)
        transaction = FakeTransaction()
        self.transactions.append(transaction)
        return StartProcessing(transaction)

    async def save_response(self, transaction, user_id, key, response):
        await transaction.commit()
        self.saved[(user_id, key.value)] = response
        return response


class FakeSubscriptions:
    def __init__(self, subscribers):
        self.subscribers = subscribers

    async def get_confirmed_subscribers(self):
        return list(self.subscribers)


class FakeEmailClient:
    def __init__(self, fail_for: set[str] | None = None):
        self.fail_for = fail_for or set()
        self.sent: list[tuple[str, str]] = []

    async def send_email(self, recipient, subject, html_body, text_body):
        if recipient.value in self.fail_for:
            raise EmailDispatchError(f"rejected {recipient}")
        self.sent.append((recipient.value, subject))


def _subscriber(email: str) -> ConfirmedSubscriber:
    return ConfirmedSubscriber(Email.parse(email))


@pytest.fixture
def store() -> FakeIdempotencyStore:
    return FakeIdempotencyStore()


def _publisher(store, subscribers, email_client) -> NewsletterPublisher:
    return NewsletterPublisher(store, FakeSubscriptions(subscribers), email_client)


async def _publish(publisher: NewsletterPublisher, user_id, key: str = "abc") -> Response:
    return await publisher.publish(user_id, "Title", "<p>html</p>", "text", key)


class TestPublish:
    async def test_sends_to_every_confirmed_subscriber_in_order(self, store):
        email_client = FakeEmailClient()
        publisher = _publisher(
            store,
            [_subscriber("a@example.com"), _subscriber("b@example.com")],
            email_client,
        )

        response = await _publish(publisher, uuid4())

        assert response.status_code == 303
        assert response.headers["location"] == "/admin/newsletters"
        assert email_client.sent == [("a@example.com", "Title"), ("b@example.com", "Title")]
        assert store.transactions[0].committed

    async def test_no_subscribers_still_saves_response(self, store):
        email_client = FakeEmailClient()
        publisher = _publisher(store, [], email_client)

        response = await _publish(publisher, uuid4())

        assert response.status_code == 303
        assert email_client.sent == []
        assert len(store.saved) == 1


class TestIdempotency:
    async def test_retry_replays_without_sending(self, store):
        email_client = FakeEmailClient()
        publisher = _publisher(store, [_subscriber("a@example.com")], email_client)
        user_id = uuid4()

        first = await _publish(publisher, user_id)
        second = await _publish(publisher, user_id)

        assert second is first
        assert len(email_client.sent) == 1

    async def test_same_key_for_another_user_is_processed(self, store):
        email_client = FakeEmailClient()
        publisher = _publisher(store, [_subscriber("a@example.com")], email_client)

        await _publish(publisher, uuid4())
        await _publish(publisher, uuid4())

        assert len(email_client.sent) == 2

    @pytest.mark.parametrize("key", ["", "k" * 50])
    async def test_invalid_key_is_rejected_before_any_work(self, store, key: str):
        email_client = FakeEmailClient()
        publisher = _publisher(store, [_subscriber("a@example.com")], email_client)

        with pytest.raises(InvalidIdempotencyKeyError):
            await _publish(publisher, uuid4(), key)

        assert store.transactions == []
        assert email_client.sent == []


class TestDeliveryFailure:
    async def test_failed_send_rolls_back_and_raises(self, store):
        email_client = FakeEmailClient(fail_for={"b@example.com"})
        publisher = _publisher(
            store,
            [_subscriber("a@example.com"), _subscriber("b@example.com")],
            email_client,
        )

        with pytest.raises(NewsletterDeliveryError) as exc_info:
            await _publish(publisher, uuid4())

        assert isinstance(exc_info.value.__cause__, EmailDispatchError)
        assert exc_info.value.status_code == 500
        assert store.transactions[0].rolled_back
        assert not store.transactions[0].committed
        assert store.saved == {}

    async def test_retry_after_failure_resends_to_everyone(self, store):
        email_client = FakeEmailClient(fail_for={"b@example.com"})
        publisher = _publisher(
            store,
            [_subscriber("a@example.com"), _subscriber("b@example.com")],
            email_client,
        )
        user_id = uuid4()

        with pytest.raises(NewsletterDeliveryError):
            await _publish(publisher, user_id)

        email_client.fail_for.clear()
        response = await _publish(publisher, user_id)

        assert response.status_code == 303
        assert [recipient for recipient, _ in email_client.sent] == [
            "a@example.com",
            "a@example.com",
            "b@example.com",
        ]
