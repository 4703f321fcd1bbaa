"""Integration tests for activation codes and the commission backfill."""

from datetime import timedelta
from decimal import Decimal

import pytest

from maxpulse_backend.models import ActivationCode, Commission, LedgerTransaction
from maxpulse_backend.models.base import utcnow
from maxpulse_backend.services.activation_code_service import ActivationCodeService, is_valid_code_format

CODES_URL = "/api/activation-codes"


class TestActivationCodeLifecycle:

    def test_generate_validate_activate(self, client, db_session, service_headers, make_distributor):
        distributor = make_distributor()

        response = client.post(CODES_URL, json={
            "distributorId": distributor.distributor_code,
            "sessionId": "cs_test_777",
            "customerName": "Jane Client",
            "customerEmail": "Jane@Gmail.com",
            "planType": "monthly",
        }, headers=service_headers)

        assert response.status_code == 200
        code = response.json()["code"]
        assert is_valid_code_format(code)
        stored = db_session.query(ActivationCode).one()
        assert stored.distributor_id == distributor.id
        assert stored.customer_email == "jane@gmail.com"
        assert Decimal(str(stored.purchase_amount)) == Decimal("9.99")

        response = client.post(f"{CODES_URL}/validate", json={"code": code.lower()})
        assert response.json() == {
            "valid": True,
            "customerName": "Jane Client",
            "planType": "monthly",
            "assessmentType": "individual",
        }

        response = client.post(f"{CODES_URL}/activate", json={"code": code})
        assert response.status_code == 200
        assert response.json()["activation_code"]["status"] == "activated"

        response = client.post(f"{CODES_URL}/activate", json={"code": code})
        assert response.status_code == 409
        assert response.json()["error"] == "Activation code has already been used"

        response = client.post(f"{CODES_URL}/validate", json={"code": code})
        assert response.json() == {"valid": False, "reason": "Activation code has already been used"}

    def test_unknown_distributor_rejected(self, client, service_headers):
        response = client.post(CODES_URL, json={
            "distributorId": "NOBODY1",
            "customerName": "Jane",
            "customerEmail": "jane@gmail.com",
        }, headers=service_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid distributor ID"

    def test_invalid_plan_is_validation_error(self, client, service_headers):
        response = client.post(CODES_URL, json={
            "customerName": "Jane",
            "customerEmail": "jane@gmail.com",
            "planType": "weekly",
        }, headers=service_headers)

        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_generate_requires_token(self, client):
        response = client.post(CODES_URL, json={"customerName": "Jane", "customerEmail": "jane@gmail.com"})

        assert response.status_code == 401

    @pytest.mark.parametrize("code, status_code, error", [
        ("bad", 400, "Invalid code format"),
        ("ZZZZ2222", 404, "Activation code not found"),
    ])
    def test_activate_errors(self, client, code, status_code, error):
        response = client.post(f"{CODES_URL}/activate", json={"code": code})

        assert response.status_code == status_code
        assert response.json() == {"success": False, "error": error}

    def test_expired_code(self, client, make_activation_code):
        activation_code = make_activation_code(expires_at=utcnow() - timedelta(minutes=1))

        response = client.post(f"{CODES_URL}/activate", json={"code": activation_code.code})

        assert response.status_code == 410
        assert response.json()["error"] == "Activation code has expired"

    def test_revoke(self, client, service_headers, auth_headers, make_distributor, make_activation_code):
        distributor = make_distributor()
        activation_code = make_activation_code(distributor)

        denied = client.post(f"{CODES_URL}/{activation_code.code}/revoke", headers=auth_headers(distributor.id))
        assert denied.status_code == 403

        response = client.post(f"{CODES_URL}/{activation_code.code}/revoke", headers=service_headers)
        assert response.status_code == 200
        assert response.json()["activation_code"]["status"] == "revoked"

        response = client.post(f"{CODES_URL}/activate", json={"code": activation_code.code})
        assert response.status_code == 409
        assert response.json()["error"] == "Activation code has been revoked"


class TestBackfillActivationCommissions:

    def test_creates_missing_commissions_once(self, db_session, make_distributor, make_activation_code, make_commission):
        distributor = make_distributor()
        make_activation_code(distributor, plan_type="annual", purchase_amount=Decimal("99.99"))
        make_activation_code(distributor, plan_type="monthly")
        covered = make_activation_code(distributor, session_id="cs_already_paid")
        make_commission(distributor, "10.00", session_id=covered.session_id)
        make_activation_code(distributor, session_id=None)
        make_activation_code(None)

        summary = ActivationCodeService.backfill_activation_commissions(db_session)

        assert summary == {"total": 4, "created": 2, "skipped": 2, "errors": 0}

        created = db_session.query(Commission).filter(Commission.product_type == "app").order_by(
            Commission.commission_amount.desc()
        ).all()
        assert [c.product_name for c in created] == ["MAXPULSE App (annual)", "MAXPULSE App (monthly)"]
        # 99.99 * 50% and 9.99 * 40%, rounded half up
        assert [Decimal(str(c.commission_amount)) for c in created] == [Decimal("50.00"), Decimal("4.00")]
        assert all(c.status == "pending" for c in created)
        assert db_session.query(LedgerTransaction).filter(
            LedgerTransaction.reference_id.in_([c.id for c in created])
        ).count() == 2

        again = ActivationCodeService.backfill_activation_commissions(db_session)

        assert again["created"] == 0
        assert again["skipped"] == 4
        assert db_session.query(Commission).count() == 3

    def test_backfill_endpoint_admin_only(self, client, service_headers, auth_headers, make_distributor, make_activation_code):
        distributor = make_distributor()
        make_activation_code(distributor)

        denied = client.post(f"{CODES_URL}/backfill-commissions", headers=auth_headers(distributor.id))
        assert denied.status_code == 403

        response = client.post(f"{CODES_URL}/backfill-commissions", headers=service_headers)
        assert response.status_code == 200
        assert response.json() == {"success": True, "total": 1, "created": 1, "skipped": 0, "errors": 0}
