"""Integration tests for dashboard reads and realtime delivery."""

from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest

from maxpulse_backend.models import Commission, RealtimeEvent, Withdrawal
from maxpulse_backend.models.base import utcnow
from maxpulse_backend.services.realtime_service import RealtimeService, COMMISSION_UPDATES

PROCESSOR_URL = "/api/functions/commission-processor"


class TestDashboard:

    def test_distributor_stats(self, client, db_session, auth_headers, make_distributor, make_commission):
        distributor = make_distributor(tier_level=2)
        make_commission(distributor, "50.00", status="approved")
        make_commission(distributor, "12.50", status="pending")
        db_session.add(Withdrawal(distributor_id=distributor.id, amount=20, withdrawal_method="paypal"))
        db_session.commit()

        response = client.get(f"/api/dashboard/distributors/{distributor.id}/stats",
                              headers=auth_headers(distributor.id))

        assert response.status_code == 200
        stats = response.json()["stats"]
        assert stats["approvedCommissions"] == 50.0
        assert stats["pendingCommissions"] == 12.5
        assert stats["commissionCount"] == 2
        assert stats["totalWithdrawn"] == 20.0
        assert stats["availableBalance"] == 30.0

    def test_stats_for_other_distributor_denied(self, client, auth_headers, make_distributor):
        distributor = make_distributor()
        other = make_distributor()

        response = client.get(f"/api/dashboard/distributors/{distributor.id}/stats", headers=auth_headers(other.id))

        assert response.status_code == 403

    def test_stats_by_distributor_code(self, client, service_headers, make_distributor):
        distributor = make_distributor()

        response = client.get(f"/api/dashboard/distributors/{distributor.distributor_code.lower()}/stats",
                              headers=service_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["distributor"]["id"] == str(distributor.id)
        assert body["links"] == {"totalClicks": 0, "totalConversions": 0, "conversionRate": 0.0}
        assert "period" not in body

    def test_unknown_distributor_code(self, client, service_headers):
        response = client.get("/api/dashboard/distributors/WB0000000/stats", headers=service_headers)

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Distributor not found"}

    def test_period_window_and_trend(self, client, db_session, service_headers, make_distributor, make_commission):
        distributor = make_distributor()
        old = make_commission(distributor, "40.00", status="approved")
        old.created_at = utcnow() - timedelta(days=45)
        make_commission(distributor, "10.00", status="pending")
        db_session.commit()

        response = client.get(f"/api/dashboard/distributors/{distributor.id}/stats?period=30", headers=service_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["period"]["days"] == 30
        stats = body["stats"]
        assert stats["pendingCommissions"] == 10.0
        assert stats["approvedCommissions"] == 0.0
        assert stats["commissionCount"] == 1
        # (10 - 40) / 40
        assert stats["commissionTrend"] == -75.0
        assert stats["availableBalance"] == 40.0

    def test_period_out_of_range(self, client, service_headers, make_distributor):
        distributor = make_distributor()

        response = client.get(f"/api/dashboard/distributors/{distributor.id}/stats?period=0", headers=service_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Validation error"

    def test_commission_list_filters_by_status(self, client, service_headers, make_distributor, make_commission):
        distributor = make_distributor()
        make_commission(distributor, status="approved")
        make_commission(distributor, status="pending")
        make_commission(distributor, status="pending")

        response = client.get(f"/api/dashboard/distributors/{distributor.id}/commissions?status=pending&limit=1",
                              headers=service_headers)

        body = response.json()
        assert len(body["commissions"]) == 1
        assert body["pagination"] == {"total": 2, "skip": 0, "limit": 1, "has_more": True}

    def test_admin_summary(self, client, service_headers, auth_headers, make_distributor, make_commission):
        first = make_distributor()
        second = make_distributor()
        make_commission(first, "10.00")
        make_commission(second, "15.00")
        make_commission(second, "40.00", status="approved")

        assert client.get("/api/dashboard/admin/commissions/summary", headers=auth_headers(first.id)).status_code == 403

        response = client.get("/api/dashboard/admin/commissions/summary", headers=service_headers)

        assert response.json() == {
            "pending": {"count": 2, "amount": 25.0},
            "approved": {"count": 1, "amount": 40.0},
        }

    def test_bulk_approve_reports_failures(self, client, service_headers, make_distributor, make_commission):
        distributor = make_distributor()
        pending = make_commission(distributor, "10.00")
        approved = make_commission(distributor, "10.00", status="approved")

        response = client.post("/api/dashboard/admin/commissions/bulk-approve", json={
            "commissionIds": [str(pending.id), str(approved.id)],
            "approvedBy": "admin@maxpulse.app",
        }, headers=service_headers)

        body = response.json()
        assert body["success"] is False
        assert body["approved"] == [str(pending.id)]
        assert body["failed"] == [{"id": str(approved.id), "error": "Commission is already approved"}]

    def test_bulk_approve_records_caller_when_approver_omitted(
        self, client, db_session, auth_headers, make_distributor, make_commission
    ):
        distributor = make_distributor()
        pending = make_commission(distributor, "10.00")

        response = client.post("/api/dashboard/admin/commissions/bulk-approve", json={
            "commissionIds": [str(pending.id)],
        }, headers=auth_headers("admin-7", role="admin"))

        assert response.json()["approved"] == [str(pending.id)]
        db_session.expire_all()
        assert db_session.get(Commission, pending.id).approved_by == "admin-7"

    def test_product_catalog(self, client):
        products = client.get("/api/dashboard/products").json()["products"]

        assert {p["id"] for p in products} >= {"prod_health_001", "prod_package_001"}

    def test_health(self, client):
        assert client.get("/health").json()["status"] == "healthy"


class TestRealtime:

    @pytest.mark.asyncio
    async def test_broadcast_reaches_subscribers_and_persists(self, db_session):
        queue = RealtimeService.subscribe(COMMISSION_UPDATES)

        results = await RealtimeService.broadcast(COMMISSION_UPDATES, "commission_created", {"id": "c-1"}, db_session)

        assert results == {"pubsub": True, "webhook": False, "polling": True}
        message = queue.get_nowait()
        assert message["event"] == "commission_created"
        assert message["payload"] == {"id": "c-1"}
        assert db_session.query(RealtimeEvent).count() == 1

    @pytest.mark.asyncio
    async def test_webhook_failure_is_swallowed(self, db_session):
        with patch.object(RealtimeService, "_post_webhook", new=AsyncMock(side_effect=RuntimeError("HTTP 503"))):
            results = await RealtimeService.broadcast(COMMISSION_UPDATES, "commission_approved", {}, db_session)

        assert results["webhook"] is False
        assert results["polling"] is True

    def test_purchase_succeeds_when_every_channel_fails(self, client, db_session, service_headers, make_distributor):
        distributor = make_distributor()

        with patch.object(RealtimeService, "_post_webhook", new=AsyncMock(side_effect=RuntimeError("down"))), \
                patch.object(RealtimeService, "_persist", side_effect=RuntimeError("no table")), \
                patch.object(RealtimeService, "_publish_local", side_effect=RuntimeError("broken")):
            response = client.post(PROCESSOR_URL, json={
                "type": "process_purchase",
                "data": {
                    "distributorId": str(distributor.id),
                    "productId": "prod_app_001",
                    "productName": "MaxPulse App Subscription",
                    "price": 29.99,
                    "commissionRate": 25,
                    "clientName": "Jane Client",
                    "sessionId": "cs_test_rt",
                },
            }, headers=service_headers)

        assert response.status_code == 200
        assert response.json()["commission"]["commission_amount"] == 7.5

    def test_polling_endpoint(self, client, service_headers, make_distributor):
        distributor = make_distributor()
        client.post(PROCESSOR_URL, json={
            "type": "process_purchase",
            "data": {
                "distributorId": str(distributor.id),
                "productId": "prod_health_001",
                "productName": "MaxPulse Health Assessment Package",
                "price": 89.99,
                "commissionRate": 15,
                "clientName": "Jane Client",
                "sessionId": "cs_test_poll",
            },
        }, headers=service_headers)

        response = client.get(f"/api/realtime/{COMMISSION_UPDATES}/events", headers=service_headers)

        events = response.json()["events"]
        assert [event["event"] for event in events] == ["commission_created"]
        assert events[0]["payload"]["distributor_code"] == distributor.distributor_code

    def test_websocket_rejects_missing_token(self, client):
        from starlette.websockets import WebSocketDisconnect

        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect(f"/ws/realtime/{COMMISSION_UPDATES}") as websocket:
                websocket.receive_json()
