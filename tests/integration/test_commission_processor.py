"""
Integration tests for POST /api/functions/commission-processor.

Requests go through the FastAPI app against an in-memory SQLite database.
"""

import uuid
from decimal import Decimal

import pytest

from maxpulse_backend.models import Commission, LedgerTransaction, Purchase, Withdrawal
from maxpulse_backend.services.commission_calculator import calculate_commission_amount
from maxpulse_backend.services.commission_service import CommissionService

PROCESSOR_URL = "/api/functions/commission-processor"


def purchase_payload(distributor, **overrides):
    data = {
        "distributorId": str(distributor.id),
        "productId": "prod_health_001",
        "productName": "MaxPulse Health Assessment Package",
        "price": 89.99,
        "commissionRate": 15,
        "clientName": "Jane Client",
        "clientEmail": "jane.client@gmail.com",
        "sessionId": "cs_test_a1b2c3",
    }
    data.update(overrides)
    return {"type": "process_purchase", "data": data}


class TestAuthentication:

    def test_missing_token(self, client):
        response = client.post(PROCESSOR_URL, json={"type": "validate_distributor", "data": {}})

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "No authentication credentials provided"}

    def test_invalid_token(self, client):
        response = client.post(
            PROCESSOR_URL,
            json={"type": "validate_distributor", "data": {"distributorCode": "X"}},
            headers={"Authorization": "Bearer not-a-jwt"},
        )

        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_non_ascii_token_rejected(self, client):
        response = client.post(
            PROCESSOR_URL,
            json={"type": "validate_distributor", "data": {"distributorCode": "X"}},
            headers={"Authorization": "Bearer clé-secrète".encode("latin-1")},
        )

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Invalid token"}

    def test_unknown_operation(self, client, service_headers):
        response = client.post(PROCESSOR_URL, json={"type": "refund", "data": {}}, headers=service_headers)

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Unknown operation type: refund"}

    def test_malformed_operation_data(self, client, service_headers, make_distributor):
        distributor = make_distributor()
        response = client.post(PROCESSOR_URL, json={
            "type": "calculate_commission",
            "data": {"distributorId": str(distributor.id), "saleAmount": "lots"},
        }, headers=service_headers)

        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid saleAmount")


class TestProcessPurchase:

    def test_creates_purchase_commission_and_ledger_line(self, client, db_session, service_headers, make_distributor):
        distributor = make_distributor()

        response = client.post(PROCESSOR_URL, json=purchase_payload(distributor), headers=service_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["commission"]["status"] == "pending"
        # 89.99 * 15% = 13.4985, rounded half up
        assert body["commission"]["commission_amount"] == 13.5
        assert body["commission"]["product_type"] == "product"
        assert body["purchase"]["session_id"] == "cs_test_a1b2c3"

        assert db_session.query(Purchase).count() == 1
        ledger = db_session.query(LedgerTransaction).one()
        assert ledger.transaction_type == "commission_earned"
        assert ledger.status == "pending"
        assert Decimal(str(ledger.amount)) == Decimal("13.50")
        assert str(ledger.reference_id) == body["commission"]["id"]

    def test_missing_fields_listed(self, client, db_session, service_headers, make_distributor):
        distributor = make_distributor()
        payload = purchase_payload(distributor, productName=None, sessionId=None)

        response = client.post(PROCESSOR_URL, json=payload, headers=service_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Missing required fields: product_name, session_id"
        assert db_session.query(Commission).count() == 0

    def test_rate_above_cap_rejected(self, client, db_session, service_headers, make_distributor):
        distributor = make_distributor()

        response = client.post(PROCESSOR_URL, json=purchase_payload(distributor, commissionRate=55), headers=service_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Commission rate cannot exceed 50%"
        assert db_session.query(Purchase).count() == 0

    def test_three_decimal_rate_snapshot_reproduces_amount(self, client, db_session, service_headers, make_distributor):
        distributor = make_distributor()

        response = client.post(
            PROCESSOR_URL, json=purchase_payload(distributor, price=1000, commissionRate=15.555), headers=service_headers
        )

        assert response.status_code == 200
        stored = db_session.query(Commission).one()
        assert Decimal(str(stored.commission_rate)) == Decimal("15.56")
        assert Decimal(str(stored.commission_amount)) == Decimal("155.60")
        assert calculate_commission_amount(stored.sale_amount, stored.commission_rate) == Decimal(str(stored.commission_amount))
        purchase = db_session.query(Purchase).one()
        assert Decimal(str(purchase.commission_rate)) == Decimal("15.56")

    def test_non_positive_price_rejected(self, client, service_headers, make_distributor):
        distributor = make_distributor()

        response = client.post(PROCESSOR_URL, json=purchase_payload(distributor, price=0), headers=service_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Sale amount must be greater than 0"

    def test_unknown_distributor(self, client, db_session, service_headers, make_distributor):
        distributor = make_distributor()
        payload = purchase_payload(distributor, distributorId=str(uuid.uuid4()))

        response = client.post(PROCESSOR_URL, json=payload, headers=service_headers)

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Distributor not found"}
        assert db_session.query(Purchase).count() == 0


class TestCalculateCommission:

    def test_tier_bonus_applied(self, client, auth_headers, make_distributor):
        distributor = make_distributor(tier_level=3)

        response = client.post(PROCESSOR_URL, json={
            "type": "calculate_commission",
            "data": {"distributorId": str(distributor.id), "saleAmount": 89.99, "productType": "product"},
        }, headers=auth_headers(distributor.id))

        assert response.status_code == 200
        commission = response.json()["commission"]
        assert commission["effectiveRate"] == 20.0
        assert commission["tierBonus"] == 5.0
        assert commission["commissionAmount"] == 18.0

    def test_nothing_persisted(self, client, db_session, service_headers, make_distributor):
        distributor = make_distributor()

        client.post(PROCESSOR_URL, json={
            "type": "calculate_commission",
            "data": {"distributorId": str(distributor.id), "saleAmount": 100},
        }, headers=service_headers)

        assert db_session.query(Commission).count() == 0

    def test_inactive_distributor(self, client, service_headers, make_distributor):
        distributor = make_distributor(status="suspended")

        response = client.post(PROCESSOR_URL, json={
            "type": "calculate_commission",
            "data": {"distributorId": str(distributor.id), "saleAmount": 100},
        }, headers=service_headers)

        assert response.status_code == 404
        assert response.json()["error"] == "Distributor not found or inactive"

    def test_other_distributor_denied(self, client, auth_headers, make_distributor):
        distributor = make_distributor()
        other = make_distributor()

        response = client.post(PROCESSOR_URL, json={
            "type": "calculate_commission",
            "data": {"distributorId": str(distributor.id), "saleAmount": 100},
        }, headers=auth_headers(other.id))

        assert response.status_code == 403

    def test_stored_rate_used_without_override(self, client, service_headers, make_distributor):
        distributor = make_distributor(commission_rate=Decimal("12.00"))

        response = client.post(PROCESSOR_URL, json={
            "type": "calculate_commission",
            "data": {"distributorId": str(distributor.id), "saleAmount": 100},
        }, headers=service_headers)

        commission = response.json()["commission"]
        assert commission["baseRate"] == 12.0
        assert commission["commissionAmount"] == 12.0

    def test_request_rate_overrides_stored_rate(self, client, service_headers, make_distributor):
        distributor = make_distributor(commission_rate=Decimal("12.00"), tier_level=2)

        response = client.post(PROCESSOR_URL, json={
            "type": "calculate_commission",
            "data": {"distributorId": str(distributor.id), "saleAmount": 100, "commissionRate": 30},
        }, headers=service_headers)

        assert response.status_code == 200
        commission = response.json()["commission"]
        assert commission["baseRate"] == 30.0
        assert commission["effectiveRate"] == 32.0
        assert commission["commissionAmount"] == 32.0

    @pytest.mark.parametrize("rate", [-1, 120])
    def test_request_rate_out_of_range(self, client, service_headers, make_distributor, rate):
        distributor = make_distributor()

        response = client.post(PROCESSOR_URL, json={
            "type": "calculate_commission",
            "data": {"distributorId": str(distributor.id), "saleAmount": 100, "commissionRate": rate},
        }, headers=service_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Commission rate must be between 0 and 100"


class TestApproveCommission:

    def test_approve_updates_ledger_and_total(self, client, db_session, service_headers, make_distributor, make_commission):
        distributor = make_distributor()
        commission = make_commission(distributor, "50.00")

        response = client.post(PROCESSOR_URL, json={
            "type": "approve_commission",
            "data": {"commissionId": str(commission.id), "approvedBy": "admin@maxpulse.app"},
        }, headers=service_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["commission"]["status"] == "approved"
        assert body["commission"]["approved_by"] == "admin@maxpulse.app"
        assert body["commission"]["approved_at"] is not None

        db_session.expire_all()
        ledger = db_session.query(LedgerTransaction).filter(LedgerTransaction.reference_id == commission.id).one()
        assert ledger.status == "completed"
        assert Decimal(str(db_session.get(type(distributor), distributor.id).total_commissions)) == Decimal("50.00")

    def test_second_approval_conflicts_and_changes_nothing(
        self, client, db_session, service_headers, make_distributor, make_commission
    ):
        distributor = make_distributor()
        commission = make_commission(distributor, "50.00")
        request = {"type": "approve_commission", "data": {"commissionId": str(commission.id), "approvedBy": "first"}}

        client.post(PROCESSOR_URL, json=request, headers=service_headers)
        request["data"]["approvedBy"] = "second"
        response = client.post(PROCESSOR_URL, json=request, headers=service_headers)

        assert response.status_code == 409
        assert response.json() == {"success": False, "error": "Commission is already approved"}

        db_session.expire_all()
        stored = db_session.get(Commission, commission.id)
        assert stored.approved_by == "first"
        assert Decimal(str(db_session.get(type(distributor), distributor.id).total_commissions)) == Decimal("50.00")

    def test_unknown_commission(self, client, service_headers):
        response = client.post(PROCESSOR_URL, json={
            "type": "approve_commission",
            "data": {"commissionId": str(uuid.uuid4())},
        }, headers=service_headers)

        assert response.status_code == 404
        assert response.json()["error"] == "Commission not found"

    def test_distributor_cannot_approve(self, client, auth_headers, make_distributor, make_commission):
        distributor = make_distributor()
        commission = make_commission(distributor)

        response = client.post(PROCESSOR_URL, json={
            "type": "approve_commission",
            "data": {"commissionId": str(commission.id)},
        }, headers=auth_headers(distributor.id))

        assert response.status_code == 403
        assert response.json()["error"] == "Admin access required"

    def test_admin_jwt_can_approve(self, client, auth_headers, make_distributor, make_commission):
        distributor = make_distributor()
        commission = make_commission(distributor)

        response = client.post(PROCESSOR_URL, json={
            "type": "approve_commission",
            "data": {"commissionId": str(commission.id)},
        }, headers=auth_headers("admin-1", role="admin"))

        assert response.status_code == 200
        assert response.json()["commission"]["approved_by"] == "admin-1"

    def test_approver_id_key_accepted(self, client, db_session, service_headers, make_distributor, make_commission):
        distributor = make_distributor()
        commission = make_commission(distributor)

        response = client.post(PROCESSOR_URL, json={
            "type": "approve_commission",
            "data": {"commissionId": str(commission.id), "approverId": "ops@maxpulse.app"},
        }, headers=service_headers)

        assert response.status_code == 200
        db_session.expire_all()
        assert db_session.get(Commission, commission.id).approved_by == "ops@maxpulse.app"

    def test_service_caller_recorded_when_approver_omitted(self, client, service_headers, make_distributor, make_commission):
        distributor = make_distributor()
        commission = make_commission(distributor)

        response = client.post(PROCESSOR_URL, json={
            "type": "approve_commission",
            "data": {"commissionId": str(commission.id)},
        }, headers=service_headers)

        assert response.json()["commission"]["approved_by"] == "service_role"


class TestProcessWithdrawal:

    def withdraw(self, client, headers, distributor, amount, method="bank_transfer"):
        return client.post(PROCESSOR_URL, json={
            "type": "process_withdrawal",
            "data": {
                "distributorId": str(distributor.id),
                "amount": amount,
                "withdrawalMethod": method,
                "paymentDetails": {"iban": "DE89370400440532013000"},
            },
        }, headers=headers)

    def test_withdrawal_within_balance(self, client, db_session, auth_headers, make_distributor, make_commission):
        distributor = make_distributor()
        make_commission(distributor, "50.00", status="approved")

        response = self.withdraw(client, auth_headers(distributor.id), distributor, 20)

        assert response.status_code == 200
        body = response.json()
        assert body["newBalance"] == 30.0
        assert body["withdrawal"]["status"] == "pending"
        assert body["withdrawal"]["payment_details"] == {"iban": "DE89370400440532013000"}

        ledger = db_session.query(LedgerTransaction).filter(
            LedgerTransaction.transaction_type == "withdrawal_request"
        ).one()
        assert Decimal(str(ledger.amount)) == Decimal("-20.00")

    def test_over_balance_rejected_without_rows(self, client, db_session, service_headers, make_distributor, make_commission):
        distributor = make_distributor()
        make_commission(distributor, "50.00", status="approved")
        self.withdraw(client, service_headers, distributor, 20)

        response = self.withdraw(client, service_headers, distributor, 40)

        assert response.status_code == 400
        assert response.json()["error"] == "Insufficient balance. Available: $30.00, Requested: $40.00"
        assert db_session.query(Withdrawal).count() == 1

    def test_pending_commissions_not_withdrawable(self, client, db_session, service_headers, make_distributor, make_commission):
        distributor = make_distributor()
        make_commission(distributor, "50.00", status="pending")

        response = self.withdraw(client, service_headers, distributor, 10)

        assert response.status_code == 400
        assert response.json()["error"] == "Insufficient balance. Available: $0.00, Requested: $10.00"
        assert db_session.query(Withdrawal).count() == 0

    @pytest.mark.parametrize("amount", [0, -5])
    def test_non_positive_amount(self, client, service_headers, make_distributor, amount):
        distributor = make_distributor()

        response = self.withdraw(client, service_headers, distributor, amount)

        assert response.status_code == 400
        assert response.json()["error"] == "Withdrawal amount must be greater than 0"

    def test_missing_method(self, client, service_headers, make_distributor):
        distributor = make_distributor()

        response = self.withdraw(client, service_headers, distributor, 10, method=" ")

        assert response.status_code == 400
        assert response.json()["error"] == "Withdrawal method is required"

    def test_method_key_accepted(self, client, db_session, service_headers, make_distributor, make_commission):
        distributor = make_distributor()
        make_commission(distributor, "50.00", status="approved")

        response = client.post(PROCESSOR_URL, json={
            "type": "process_withdrawal",
            "data": {"distributorId": str(distributor.id), "amount": 10, "method": "paypal"},
        }, headers=service_headers)

        assert response.status_code == 200
        assert db_session.query(Withdrawal).one().withdrawal_method == "paypal"

    def test_other_distributor_denied(self, client, auth_headers, make_distributor):
        distributor = make_distributor()
        other = make_distributor()

        response = self.withdraw(
client, auth_headers(other.id), distributor, 10)

        assert response.status_code == 403

    def test_released_withdrawals_return_funds(self, db_session, make_distributor, make_commission):
        distributor = make_distributor()
        make_commission(distributor, "50.00", status="approved")
        db_session.add(Withdrawal(distributor_id=distributor.id, amount=Decimal("30.00"),
                                  withdrawal_method="paypal", status="rejected"))
        db_session.add(Withdrawal(distributor_id=distributor.id, amount=Decimal("5.00"),
                                  withdrawal_method="paypal", status="completed"))
        db_session.commit()

        assert CommissionService.get_available_balance(db_session, distributor.id) == Decimal("45.00")


class TestValidateDistributor:

    def test_valid_code_case_insensitive(self, client, service_headers, make_distributor):
        distributor = make_distributor(tier_level=2)

        response = client.post(PROCESSOR_URL, json={
            "type": "validate_distributor",
            "data": {"distributorCode": distributor.distributor_code.lower()},
        }, headers=service_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["valid"] is True
        assert body["distributor"] == {
            "id": str(distributor.id),
            "code": distributor.distributor_code,
            "commissionRate": 15.0,
            "tierLevel": 2,
            "name": distributor.name,
            "phone": distributor.phone,
        }

    def test_unknown_code(self, client, service_headers):
        response = client.post(PROCESSOR_URL, json={
            "type": "validate_distributor",
            "data": {"distributorCode": "NOPE123"},
        }, headers=service_headers)

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Invalid distributor code"}

    def test_inactive_distributor_invalid(self, client, service_headers, make_distributor):
        distributor = make_distributor(status="inactive")

        response = client.post(PROCESSOR_URL, json={
            "type": "validate_distributor",
            "data": {"distributorCode": distributor.distributor_code},
        }, headers=service_headers)

        assert response.status_code == 404
