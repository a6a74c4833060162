"""Tests for GET /subscriptions/confirm."""

import httpx
import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from newsletter.models import Subscription, SubscriptionTokenRecord


def _path(link: str) -> str:
    return httpx.URL(link).raw_path.decode()


class TestConfirmSuccess:
    async def test_link_from_email_returns_200(
        self, async_client: AsyncClient, create_unconfirmed_subscriber
    ):
        link = await create_unconfirmed_subscriber()

        response = await async_client.get(_path(link))

        assert response.status_code == 200

    async def test_link_confirms_the_subscriber(
        self,
        async_client: AsyncClient,
        db_session: AsyncSession,
        create_unconfirmed_subscriber,
    ):
        link = await create_unconfirmed_subscriber()

        await async_client.get(_path(link))

        status = (await db_session.execute(select(Subscription.status))).scalar_one()
        assert status == "confirmed"

    async def test_token_is_consumed(
        self,
        async_client: AsyncClient,
        db_session: AsyncSession,
        create_unconfirmed_subscriber,
    ):
        link = await create_unconfirmed_subscriber()

        await async_client.get(_path(link))

        count = (
            await db_session.execute(select(func.count()).select_from(SubscriptionTokenRecord))
        ).scalar_one()
        assert count == 0


class TestConfirmFailures:
    async def test_second_click_returns_401(
        self, async_client: AsyncClient, create_unconfirmed_subscriber
    ):
        link = await create_unconfirmed_subscriber()

        first = await async_client.get(_path(link))
        second = await async_client.get(_path(link))

        assert first.status_code == 200
        assert second.status_code == 401
        assert second.json()["error"]["code"] == "UNAUTHORIZED"

    async def test_unknown_token_returns_401(self, async_client: AsyncClient, db_session):
        response = await async_client.get(
            "/subscriptions/confirm", params={"subscription_token": "a" * 30}
        )
        assert response.status_code == 401

    async def test_missing_token_returns_400(self, async_client: AsyncClient):
        response = await async_client.get("/subscriptions/confirm")
        assert response.status_code == 400

    @pytest.mark.parametrize("token", ["short", "a" * 31, "a" * 29 + "!"])
    async def test_malformed_token_returns_400(self, async_client: AsyncClient, token: str):
        response = await async_client.get(
            "/subscriptions/confirm", params={"subscription_token": token}
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_SUBSCRIPTION_TOKEN"

    async def test_unknown_token_leaves_pending_subscribers_untouched(
        self,
        async_client: AsyncClient,
        db_session: AsyncSession,
        create_unconfirmed_subscriber,
    ):
        await create_unconfirmed_subscriber()

        await async_client.get("/subscriptions/confirm", params={"subscription_token": "b" * 30})

        status = (await db_session.execute(select(Subscription.status))).scalar_one()
        assert status == "pending_confirmation"
