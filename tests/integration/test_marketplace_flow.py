"""Integration tests for the listing / bid / buy-now / ledger endpoints."""

from datetime import UTC, datetime, timedelta

import pytest

pytestmark = [pytest.mark.integration, pytest.mark.asyncio(loop_scope="session")]


def _listing_body(**overrides):
    body = {
        "restaurant_name": "St. JOHN",
        "location": "Smithfield",
        "cuisine": "British",
        "reservation_date": "2026-12-31",
        "reservation_time": "20:00",
        "party_size": 2,
        "price_cents": 12000,
        "original_price_cents": 8000,
    }
    body.update(overrides)
    return body


async def _create(client, headers, **overrides) -> dict:
    resp = await client.post("/api/v1/listings", json=_listing_body(**overrides), headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


class TestListings:
    async def test_buyer_cannot_create(self, client, login_as):
        buyer = await login_as("buyer")
        resp = await client.post("/api/v1/listings", json=_listing_body(), headers=buyer)
        assert resp.status_code == 403

    async def test_create_get_update_delete(self, client, login_as):
        seller = await login_as("seller", "seller")
        listing = await _create(client, seller)
        assert listing["status"] == "available"

        got = await client.get(f"/api/v1/listings/{listing['id']}", headers=seller)
        assert got.json()["data"]["price_cents"] == 12000

        upd = await client.patch(
            f"/api/v1/listings/{listing['id']}/ask", json={"price_cents": 9900}, headers=seller
        )
        assert upd.json()["data"]["price_cents"] == 9900

        # A cached read must reflect the new ask
        got = await client.get(f"/api/v1/listings/{listing['id']}", headers=seller)
        assert got.json()["data"]["price_cents"] == 9900

        deleted = await client.delete(f"/api/v1/listings/{listing['id']}", headers=seller)
        assert deleted.status_code == 200
        gone = await client.get(f"/api/v1/listings/{listing['id']}", headers=seller)
        assert gone.status_code == 404

    async def test_other_seller_cannot_update_ask(self, client, login_as):
        seller = await login_as("seller", "seller")
        other = await login_as("other", "seller")
        listing = await _create(client, seller)
        resp = await client.patch(
            f"/api/v1/listings/{listing['id']}/ask", json={"price_cents": 1}, headers=other
        )
        assert resp.status_code == 403


class TestBidding:
    async def test_bid_ladder_and_accept(self, client, login_as):
        seller = await login_as("seller", "seller")
        alice = await login_as("alice")
        bob = await login_as("bob")
        end = (datetime.now(UTC) + timedelta(days=2)).isoformat()
        listing = await _create(
            client, seller, allow_bidding=True, minimum_bid_cents=100, bid_end_time=end
        )
        url = f"/api/v1/listings/{listing['id']}/bids"

        low = await client.post(url, json={"amount_cents": 90}, headers=alice)
        assert low.status_code == 422
        first = await client.post(url, json={"amount_cents": 150}, headers=alice)
        assert first.status_code == 201
        tie = await client.post(url, json={"amount_cents": 150}, headers=bob)
        assert tie.status_code == 422
        top = await client.post(url, json={"amount_cents": 200}, headers=bob)
        assert top.json()["data"]["current_bid_cents"] == 200

        bids = await client.get(url, headers=seller)
        assert [b["amount_cents"] for b in bids.json()["data"]["items"]] == [200, 150]

        bid_id = top.json()["data"]["bid"]["id"]
        denied = await client.post(f"{url}/{bid_id}/accept", headers=alice)
        assert denied.status_code == 403

        accepted = await client.post(f"{url}/{bid_id}/accept", headers=seller)
        assert accepted.status_code == 200
        data = accepted.json()["data"]
        assert data["listing"]["status"] == "sold"
        assert len(data["rejected_bid_ids"]) == 1

        stats = await client.get(f"/api/v1/listings/{listing['id']}/stats", headers=seller)
        assert stats.json()["data"]["last_sale_price_cents"] == 200

    async def test_rate_limit_after_five_bids(self, client, login_as):
        seller = await login_as("seller", "seller")
        bidder = await login_as("eager")
        listings = [await _create(client, seller, allow_bidding=True) for _ in range(6)]

        for listing in listings[:5]:
            ok = await client.post(
                f"/api/v1/listings/{listing['id']}/bids", json={"amount_cents": 100}, headers=bidder
            )
            assert ok.status_code == 201

        resp = await client.post(
            f"/api/v1/listings/{listings[5]['id']}/bids", json={"amount_cents": 100}, headers=bidder
        )
        assert resp.status_code == 429
        assert int(resp.headers["Retry-After"]) > 0

        status = await client.get("/api/v1/bids/rate-limit", headers=bidder)
        assert status.json()["data"]["blocked"] is True


class TestBuyNow:
    async def test_sell_out_and_history(self, client, login_as):
        seller = await login_as("seller", "seller")
        buyer = await login_as("buyer")
        listing = await _create(client, seller, stock_remaining=2)
        url = f"/api/v1/listings/{listing['id']}/buy"

        first = await client.post(url, headers=buyer)
        assert first.json()["data"]["listing"]["stock_remaining"] == 1
        second = await client.post(url, headers=buyer)
        assert second.json()["data"]["listing"]["status"] == "sold"
        third = await client.post(url, headers=buyer)
        assert third.status_code == 422

        sales = await client.get(f"/api/v1/listings/{listing['id']}/sales", headers=buyer)
        assert len(sales.json()["data"]["items"]) == 2

    async def test_seller_cannot_buy_own(self, client, login_as):
        seller = await login_as("seller", "seller")
        listing = await _create(client, seller)
        resp = await client.post(f"/api/v1/listings/{listing['id']}/buy", headers=seller)
        assert resp.status_code == 422
