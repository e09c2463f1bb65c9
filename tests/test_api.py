from __future__ import annotations

from datetime import date
from decimal import Decimal

from dormbill.models.base.enums import BillStatus

from tests.helpers import ADMIN_USER_ID

API = "/api/v1"


def bill_body(tenant, room, **overrides):
    body = {
        "tenant_id": tenant.id,
        "room_id": room.id,
        "billing_month": "2025-03-01",
        "due_date": "2025-04-05",
        "items": [{"item_type": "rent", "unit_price": "1000"}],
    }
    body.update(overrides)
    return body


def create_bill(client, admin_headers, tenant, room, **overrides):
    response = client.post(f"{API}/bills", json=bill_body(tenant, room, **overrides), headers=admin_headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


# -----------------------------------------------------------------------------
# Health and error envelope
# -----------------------------------------------------------------------------

def test_health(client):
    response = client.get(f"{API}/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["database"] == "ok"
    assert "X-Request-ID" in response.headers


def test_missing_token_is_401_with_error_envelope(client):
    response = client.get(f"{API}/bills")

    assert response.status_code == 401
    assert response.json() == {
        "success": False,
        "error": {"code": "AUTHENTICATION_FAILED", "message": "Not authenticated", "details": {}},
    }


def test_invalid_token_is_401(client):
    response = client.get(f"{API}/bills", headers={"Authorization": "Bearer not-a-token"})

    assert response.status_code == 401


def test_tenant_cannot_create_bills(client, tenant_headers, tenant, room):
    response = client.post(f"{API}/bills", json=bill_body(tenant, room), headers=tenant_headers)

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "INSUFFICIENT_PERMISSIONS"


def test_request_validation_is_422_with_field_errors(client, admin_headers, tenant):
    response = client.post(
        f"{API}/bills",
        json={"tenant_id": tenant.id, "billing_month": "March"},
        headers=admin_headers,
    )

    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert "room_id" in error["details"]["field_errors"]


# -----------------------------------------------------------------------------
# Bills
# -----------------------------------------------------------------------------

def test_create_bill_ignores_client_totals(client, admin_headers, job_queue, tenant, room):
    data = create_bill(client, admin_headers, tenant, room, total_amount="1", subtotal="1")

    assert data["total_amount"] == "1000.00"
    assert data["subtotal"] == "1000.00"
    assert data["status"] == BillStatus.PENDING.value
    assert data["remaining_amount"] == "1000.00"
    assert [item["item_type"] for item in data["items"]] == ["rent"]
    assert job_queue.names() == ["send-line-notification"]


def test_duplicate_bill_for_month_is_conflict(client, admin_headers, tenant, room):
    create_bill(client, admin_headers, tenant, room)

    response = client.post(
        f"{API}/bills", json=bill_body(tenant, room, billing_month="2025-03-20"), headers=admin_headers
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "CONFLICT"


def test_tenant_sees_only_own_bills(client, admin_headers, tenant_headers, tenant, make_tenant, room):
    own = create_bill(client, admin_headers, tenant, room)
    other = create_bill(client, admin_headers, make_tenant(), room)

    listing = client.get(f"{API}/bills", headers=tenant_headers)
    assert [bill["id"] for bill in listing.json()["data"]] == [own["id"]]

    admin_listing = client.get(f"{API}/bills", headers=admin_headers)
    assert len(admin_listing.json()["data"]) == 2

    assert client.get(f"{API}/bills/{own['id']}", headers=tenant_headers).status_code == 200
    forbidden = client.get(f"{API}/bills/{other['id']}", headers=tenant_headers)
    assert forbidden.status_code == 403


def test_unknown_bill_is_404(client, admin_headers):
    response = client.get(f"{API}/bills/missing", headers=admin_headers)

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "RESOURCE_NOT_FOUND"


def test_generate_monthly_is_idempotent(client, admin_headers, make_tenant):
    make_tenant()
    make_tenant()
    body = {"billing_month": "2025-03-01", "rent_amount": "2500"}

    first = client.post(f"{API}/bills/generate-monthly", json=body, headers=admin_headers).json()["data"]
    second = client.post(f"{API}/bills/generate-monthly", json=body, headers=admin_headers).json()["data"]

    assert first["created_count"] == 2
    assert second["created_count"] == 0
    assert second["skipped_count"] == 2
    bills = client.get(f"{API}/bills", params={"billing_month": "2025-03-01"}, headers=admin_headers)
    assert {bill["total_amount"] for bill in bills.json()["data"]} == {"2500.00"}


def test_overdue_listing_reports_days(client, admin_headers, tenant, room):
    created = create_bill(client, admin_headers, tenant, room, due_date="2020-01-05")

    response = client.get(f"{API}/bills/overdue", headers=admin_headers)

    [overdue] = response.json()["data"]
    assert overdue["id"] == created["id"]
    assert overdue["days_overdue"] > 0


def test_status_override(client, admin_headers, tenant, room):
    created = create_bill(client, admin_headers, tenant, room)

    response = client.put(
        f"{API}/bills/{created['id']}/status",
        json={"status": "cancelled", "notes": "Tenant moved rooms"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["data"]["status"] == "cancelled"


# -----------------------------------------------------------------------------
# Payments
# -----------------------------------------------------------------------------

def test_tenant_payment_flow(client, admin_headers, tenant_headers, job_queue, tenant, room):
    bill = create_bill(client, admin_headers, tenant, room)

    submitted = client.post(
        f"{API}/payments",
        json={
            "bill_id": bill["id"],
            "amount": "400",
            "payment_method": "promptpay",
            "receipt_url": "https://files.example/slip.jpg",
        },
        headers=tenant_headers,
    )
    assert submitted.status_code == 201, submitted.text
    first = submitted.json()["data"]
    assert first["status"] == "pending"
    detail = client.get(f"{API}/bills/{bill['id']}", headers=tenant_headers).json()["data"]
    assert detail["status"] == "verifying"
    assert [p["id"] for p in detail["payments"]] == [first["id"]]

    approved = client.patch(f"{API}/payments/{first['id']}/approve", headers=admin_headers)
    assert approved.status_code == 200
    assert approved.json()["data"]["approved_by"] == ADMIN_USER_ID

    second = client.post(
        f"{API}/payments",
        json={"bill_id": bill["id"], "amount": "600", "payment_method": "cash"},
        headers=tenant_headers,
    ).json()["data"]
    assert client.put(f"{API}/payments/{second['id']}/approve", headers=admin_headers).status_code == 200

    detail = client.get(f"{API}/bills/{bill['id']}", headers=admin_headers).json()["data"]
    assert detail["status"] == "paid"
    assert detail["paid_amount"] == "1000.00"
    assert detail["remaining_amount"] == "0.00"
    assert detail["paid_at"] is not None
    assert job_queue.names().count("send-line-notification") == 5


def test_tenant_cannot_approve(client, admin_headers, tenant_headers, tenant, room):
    bill = create_bill(client, admin_headers, tenant, room)
    payment = client.post(
        f"{API}/payments",
        json={"bill_id": bill["id"], "amount": "100", "payment_method": "cash"},
        headers=tenant_headers,
    ).json()["data"]

    response = client.patch(f"{API}/payments/{payment['id']}/approve", headers=tenant_headers)

    assert response.status_code == 403


def test_sub_cent_amount_fails_validation(client, admin_headers, tenant, room):
    bill = create_bill(client, admin_headers, tenant, room)

    response = client.post(
        f"{API}/payments",
        json={"bill_id": bill["id"], "amount": "0.001", "payment_method": "cash"},
        headers=admin_headers,
    )

    assert response.status_code == 422
    assert "amount" in response.json()["error"]["details"]["field_errors"]


def test_overpayment_is_invalid_amount(client, admin_headers, tenant, room):
    bill = create_bill(client, admin_headers, tenant, room)

    response = client.post(
        f"{API}/payments",
        json={"bill_id": bill["id"], "amount": "1000.50", "payment_method": "cash"},
        headers=admin_headers,
    )

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "INVALID_AMOUNT"
    assert error["details"]["remaining"] == "1000.00"


def test_paid_bill_refuses_tenant_payment(client, admin_headers, tenant_headers, tenant, room):
    bill = create_bill(client, admin_headers, tenant, room)
    payment = client.post(
        f"{API}/payments",
        json={"bill_id": bill["id"], "amount": "1000", "payment_method": "cash"},
        headers=admin_headers,
    ).json()["data"]
    client.patch(f"{API}/payments/{payment['id']}/approve", headers=admin_headers)

    response = client.post(
        f"{API}/payments",
        json={"bill_id": bill["id"], "amount": "1", "payment_method": "cash"},
        headers=tenant_headers,
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "ALREADY_PAID"


def test_reject_with_reason(client, admin_headers, tenant, room):
    bill = create_bill(client, admin_headers, tenant, room)
    payment = client.post(
        f"{API}/payments",
        json={"bill_id": bill["id"], "amount": "1000", "payment_method": "bank_transfer",
              "receipt_url": "https://files.example/slip.jpg"},
        headers=admin_headers,
    ).json()["data"]

    response = client.put(
        f"{API}/payments/{payment['id']}/reject",
        json={"reason": "Amount on slip does not match"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "rejected"
    assert data["notes"].endswith("Reject Reason: Amount on slip does not match")
    detail = client.get(f"{API}/bills/{bill['id']}", headers=admin_headers).json()["data"]
    assert detail["status"] == "pending"

    again = client.patch(f"{API}/payments/{payment['id']}/reject", headers=admin_headers)
    assert again.status_code == 400
    assert again.json()["error"]["code"] == "INVALID_STATE"


def test_delete_payment_returns_recomputed_bill(client, admin_headers, tenant, room):
    bill = create_bill(client, admin_headers, tenant, room)
    payment = client.post(
        f"{API}/payments",
        json={"bill_id": bill["id"], "amount": "1000", "payment_method": "cash"},
        headers=admin_headers,
    ).json()["data"]
    client.patch(f"{API}/payments/{payment['id']}/approve", headers=admin_headers)

    response = client.delete(f"{API}/payments/{payment['id']}", headers=admin_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["paid_amount"] == "0.00"
    assert data["status"] == "pending"
    assert data["paid_at"] is None
    assert client.get(f"{API}/payments/{payment['id']}", headers=admin_headers).status_code == 404


def test_payment_listing_is_scoped(client, admin_headers, tenant_headers, tenant, make_tenant, room):
    own_bill = create_bill(client, admin_headers, tenant, room)
    other_bill = create_bill(client, admin_headers, make_tenant(), room)
    for bill in (own_bill, other_bill):
        client.post(
            f"{API}/payments",
            json={"bill_id": bill["id"], "amount": "10", "payment_method": "cash"},
            headers=admin_headers,
        )

    listing = client.get(f"{API}/payments", headers=tenant_headers).json()["data"]

    assert [payment["bill_id"] for payment in listing] == [own_bill["id"]]


# -----------------------------------------------------------------------------
# Utilities
# -----------------------------------------------------------------------------

def test_utility_crud(client, admin_headers, room):
    body = {
        "room_id": room.id,
        "record_month": "2025-03-01",
        "water": {"previous": "100", "current": "110"},
        "electricity": {"previous": "1000", "current": "1050"},
    }

    created = client.post(f"{API}/utilities", json=body, headers=admin_headers)
    assert created.status_code == 201
    utility = created.json()["data"]
    assert utility["water_cost"] == "150.00"
    assert utility["electricity_cost"] == "400.00"
    assert utility["total_cost"] == "550.00"

    duplicate = client.post(f"{API}/utilities", json=body, headers=admin_headers)
    assert duplicate.status_code == 400
    assert duplicate.json()["error"]["code"] == "CONFLICT"

    updated = client.put(
        f"{API}/utilities/{utility['id']}",
        json={"electricity_current_reading": "1100"},
        headers=admin_headers,
    ).json()["data"]
    assert updated["electricity_cost"] == "800.00"
    assert updated["water_cost"] == "150.00"

    listing = client.get(f"{API}/utilities", params={"room_id": room.id}, headers=admin_headers)
    assert [u["id"] for u in listing.json()["data"]] == [utility["id"]]

    assert client.delete(f"{API}/utilities/{utility['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"{API}/utilities/{utility['id']}", headers=admin_headers).status_code == 404


def test_bill_from_utility_snapshot(client, admin_headers, tenant, room):
    utility = client.post(
        f"{API}/utilities",
        json={
            "room_id": room.id,
            "record_month": "2025-03-01",
            "water": {"previous": "100", "current": "110"},
            "electricity": {"previous": "1000", "current": "1050"},
        },
        headers=admin_headers,
    ).json()["data"]

    data = create_bill(client, admin_headers, tenant, room, items=[], utility_id=utility["id"])

    assert Decimal(data["total_amount"]) == Decimal("3550")
    assert sorted(item["item_type"] for item in data["items"]) == ["electricity", "rent", "water"]


# -----------------------------------------------------------------------------
# Notifications
# -----------------------------------------------------------------------------

def test_send_notification_pushes_to_line(client, admin_headers, tenant, line_api):
    response = client.post(
        f"{API}/notifications/send",
        json={"tenant_id": tenant.id, "notification_type": "general", "title": "Notice",
              "message": "Elevator maintenance on Friday"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["success"] is True
    assert data["message_id"] == "msg-1"
    assert line_api.bodies()[0]["to"] == tenant.line_user_id


def test_send_notification_to_unlinked_tenant(client, admin_headers, make_tenant, line_api):
    offline = make_tenant(line_user_id=None)

    response = client.post(
        f"{API}/notifications/send",
        json={"tenant_id": offline.id, "message": "Hello"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["data"]["success"] is False
    assert line_api.requests == []


def test_line_outage_surfaces_as_502(client, admin_headers, tenant, line_api):
    line_api.status_code = 500

    response = client.post(
        f"{API}/notifications/send",
        json={"tenant_id": tenant.id, "message": "Hello"},
        headers=admin_headers,
    )

    assert response.status_code == 502
    assert response.json()["error"]["code"] == "EXTERNAL_SERVICE_ERROR"


def test_send_bill_notification_is_queued(client, admin_headers, job_queue, tenant, room):
    bill = create_bill(client, admin_headers, tenant, room, due_date=date(2025, 4, 5).isoformat())

    response = client.post(
        f"{API}/notifications/send-bill",
        json={"bill_id": bill["id"], "notification_type": "bill_due"},
        headers=admin_headers,
    )

    assert response.status_code == 202
    assert response.json()["data"]["job_name"] == "send-line-notification"
    name, payload = job_queue.jobs[-1]
    assert payload == {"tenant_id": tenant.id, "bill_id": bill["id"], "notification_type": "bill_due"}


def test_send_bill_notification_requires_bill_type(client, admin_headers, tenant, room):
    bill = create_bill(client, admin_headers, tenant, room)

    response = client.post(
        f"{API}/notifications/send-bill",
        json={"bill_id": bill["id"], "notification_type": "general"},
        headers=admin_headers,
    )

    assert response.status_code == 422
