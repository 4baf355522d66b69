"""Tests for the accounting HTTP API."""

import pytest
from decimal import Decimal
from uuid import UUID, uuid4

from fastapi.testclient import TestClient

from storeledger.models.accounting import Partner

API = "/api/v1/accounting"


def _entry_payload(entry_date="2025-01-15", amount="100000", debit="1121", credit="511", **extra):
    return {
        "entry_date": entry_date,
        "memo": "Counter sale",
        "lines": [
            {"account_code": debit, "debit": amount, "credit": "0"},
            {"account_code": credit, "debit": "0", "credit": amount},
        ],
        **extra,
    }


def _order_payload(**overrides):
    payload = {
        "id": "7001",
        "total": "500000",
        "payment_method": "bank_transfer",
        "status": "confirmed",
        "created_at": "2025-03-10T09:30:00",
    }
    payload.update(overrides)
    return payload


# Chart of accounts

def test_list_accounts_by_type(client: TestClient):
    response = client.get(f"{API}/accounts", params={"account_type": "revenue"})

    assert response.status_code == 200
    codes = [a["code"] for a in response.json()]
    assert "511" in codes
    assert all(a["account_type"] == "revenue" for a in response.json())


def test_create_account_and_conflict(client: TestClient):
    payload = {"code": "1122", "name": "Second bank", "account_type": "asset", "parent_code": "112"}

    response = client.post(f"{API}/accounts", json=payload)
    assert response.status_code == 201
    assert response.json()["level"] == 2

    duplicate = client.post(f"{API}/accounts", json=payload)
    assert duplicate.status_code == 409
    assert duplicate.json()["detail"]["kind"] == "conflict"


def test_update_unknown_account(client: TestClient):
    response = client.patch(f"{API}/accounts/000", json={"name": "Nothing"})
    assert response.status_code == 404


# Journal entries

def test_journal_entry_lifecycle(client: TestClient):
    created = client.post(f"{API}/journal-entries", json=_entry_payload(created_by="accountant"))
    assert created.status_code == 201
    entry = created.json()
    assert entry["entry_type"] == "manual"
    assert entry["reference_no"].startswith("JE-202501-")
    assert [line["account_code"] for line in entry["lines"]] == ["1121", "511"]

    fetched = client.get(f"{API}/journal-entries/{entry['id']}")
    assert fetched.status_code == 200
    assert Decimal(fetched.json()["lines"][0]["debit"]) == Decimal("100000")

    updated = client.put(f"{API}/journal-entries/{entry['id']}", json={"memo": "Corrected"})
    assert updated.status_code == 200
    assert updated.json()["memo"] == "Corrected"

    listed = client.get(f"{API}/journal-entries", params={"entry_type": "manual"})
    assert [e["id"] for e in listed.json()] == [entry["id"]]

    deleted = client.delete(f"{API}/journal-entries/{entry['id']}")
    assert deleted.status_code == 204
    assert client.get(f"{API}/journal-entries/{entry['id']}").status_code == 404


def test_engine_posting_cannot_be_deleted(client: TestClient):
    sale = client.post(f"{API}/post-sale", json=_order_payload()).json()["journal_entry"]

    response = client.delete(f"{API}/journal-entries/{sale['id']}")
    assert response.status_code == 409
    assert response.json()["detail"]["kind"] == "state_error"

    edit = client.put(f"{API}/journal-entries/{sale['id']}", json={"memo": "Edited"})
    assert edit.status_code == 409


def test_unbalanced_entry_is_a_bad_request(client: TestClient):
    payload = _entry_payload()
    payload["lines"][1]["credit"] = "90000"

    response = client.post(f"{API}/journal-entries", json=payload)
    assert response.status_code == 400
    assert response.json()["detail"]["kind"] == "validation_error"


def test_unknown_account_is_a_bad_request(client: TestClient):
    response = client.post(f"{API}/journal-entries", json=_entry_payload(debit="999"))
    assert response.status_code == 400
    assert response.json()["detail"]["identifiers"]["account_code"] == "999"


def test_duplicate_reference_is_a_conflict(client: TestClient):
    assert client.post(f"{API}/journal-entries", json=_entry_payload(reference_no="INV-1")).status_code == 201
    assert client.post(f"{API}/journal-entries", json=_entry_payload(reference_no="INV-1")).status_code == 409


def test_negative_amount_fails_validation(client: TestClient):
    response = client.post(f"{API}/journal-entries", json=_entry_payload(amount="-5"))
    assert response.status_code == 422


# Posting engine

def test_post_sale_and_repeat(client: TestClient):
    first = client.post(f"{API}/post-sale", json=_order_payload())
    assert first.status_code == 200
    body = first.json()
    assert body["posted"] is True
    assert body["journal_entry"]["reference_no"] == "SO-7001"

    again = client.post(f"{API}/post-sale", json=_order_payload())
    assert again.json()["journal_entry"]["id"] == body["journal_entry"]["id"]


def test_cod_sale_is_deferred_until_shipped(client: TestClient):
    response = client.post(f"{API}/post-sale", json=_order_payload(payment_method="cod"))

    assert response.status_code == 200
    assert response.json()["posted"] is False
    assert response.json()["journal_entry"] is None


def test_sync_order_posts_sale_and_cogs(client: TestClient, products):
    payload = _order_payload(
        status="shipped",
        shipped_at="2025-03-11T08:00:00",
        items=[{"product_id": "TEE-01", "quantity": 2}],
    )

    response = client.post(f"{API}/sync-order", json=payload)

    assert response.status_code == 200
    body = response.json()
    assert body["sale_entry"]["reference_no"] == "SO-7001"
    assert body["cogs_entry"]["reference_no"] == "COGS-7001"
    assert Decimal(body["cogs_entry"]["lines"][0]["debit"]) == Decimal("240000")


def test_sync_shipped_cod_order_opens_customer_receivable(client: TestClient, ledger, products):
    payload = _order_payload(
        id="7010",
        payment_method="cod",
        status="shipped",
        shipped_at="2025-03-11T08:00:00",
        customer_id="C-42",
        customer_name="Hoa Le",
        items=[{"product_id": "TEE-01", "quantity": 1}],
    )

    response = client.post(f"{API}/sync-order", json=payload)

    assert response.status_code == 200
    sale = response.json()["sale_entry"]
    assert sale["entry_date"] == "2025-03-11"
    assert sale["lines"][0]["account_code"] == "131"

    receivables = client.get(f"{API}/receivables").json()
    assert len(receivables) == 1
    receivable = receivables[0]
    assert receivable["journal_entry_id"] == sale["id"]
    assert receivable["order_id"] == "7010"
    # Shipment date plus the COD grace period
    assert receivable["due_date"] == "2025-03-18"
    assert Decimal(receivable["original_amount"]) == Decimal("500000")

    partner = ledger.query(Partner).filter(Partner.id == UUID(receivable["partner_id"])).one()
    assert partner.external_ref == "C-42"
    assert partner.name == "Hoa Le"


def test_receive_stock_reweights_average_cost(client: TestClient, products):
    response = client.post(f"{API}/products/TEE-01/purchases", json={"quantity": 10, "unit_cost": "150000"})

    assert response.status_code == 200
    assert response.json()["stock"] == 20
    assert Decimal(response.json()["average_cost"]) == Decimal("135000")

    assert client.post(f"{API}/products/GONE-01/purchases", json={"quantity": 1, "unit_cost": "1"}).status_code == 404
    assert client.post(f"{API}/products/TEE-01/purchases", json={"quantity": 0, "unit_cost": "1"}).status_code == 422


def test_post_cogs_for_unknown_products_is_rejected(client: TestClient, products):
    payload = _order_payload(items=[{"product_id": "GONE-01", "quantity": 1}])
    assert client.post(f"{API}/post-cogs", json=payload).status_code == 400


def test_post_unpaid_expense_opens_payable(client: TestClient):
    response = client.post(f"{API}/post-entry", json={
        "kind": "expense",
        "category": "rent",
        "amount": "5000000",
        "payment_status": "unpaid",
        "entry_date": "2025-03-01",
        "partner_name": "Landlord Co",
        "due_date": "2025-03-15",
    })

    assert response.status_code == 201
    body = response.json()
    assert body["payable_id"] is not None
    assert body["receivable_id"] is None

    payable = client.get(f"{API}/payables/{body['payable_id']}")
    assert payable.status_code == 200
    assert payable.json()["payment_status"] == "unpaid"


def test_post_entry_with_wrong_kind(client: TestClient):
    response = client.post(f"{API}/post-entry", json={
        "kind": "income",
        "category": "rent",
        "amount": "100000",
    })
    assert response.status_code == 400


def test_internal_transfer(client: TestClient):
    response = client.post(f"{API}/internal-transfer", json={
        "from_account": "1121",
        "to_account": "111",
        "amount": "2000000",
        "entry_date": "2025-03-05",
    })

    assert response.status_code == 201
    assert response.json()["entry_type"] == "transfer"
    assert [line["account_code"] for line in response.json()["lines"]] == ["111", "1121"]

    same = client.post(f"{API}/internal-transfer", json={
        "from_account": "111", "to_account": "111", "amount": "1",
    })
    assert same.status_code == 400


# Receivables and payables

def test_receivable_payment_flow(client: TestClient, publisher):
    sale = client.post(f"{API}/post-sale", json=_order_payload(
        id="7002", payment_method="credit", customer_id="C-9", customer_name="Bao",
    ))
    assert sale.status_code == 200

    receivables = client.get(f"{API}/receivables", params={"payment_status": "unpaid"}).json()
    assert len(receivables) == 1
    receivable_id = receivables[0]["id"]

    paid = client.post(f"{API}/receivables/{receivable_id}/payments", json={"amount": "200000"})
    assert paid.status_code == 200
    assert paid.json()["payment_status"] == "partial"
    assert paid.json()["journal_entry"]["entry_type"] == "receipt"

    rest = client.post(f"{API}/receivables/{receivable_id}/payments", json={"amount": "300000"})
    assert rest.json()["payment_status"] == "paid"
    assert Decimal(rest.json()["remaining_amount"]) == Decimal("0")

    again = client.post(f"{API}/receivables/{receivable_id}/payments", json={"amount": "1"})
    assert again.status_code == 409

    assert publisher.topics() == ["receivable.payment_settled", "receivable.payment_settled"]


def test_open_receivable_for_manual_invoice(client: TestClient):
    entry = client.post(f"{API}/journal-entries", json=_entry_payload(debit="131")).json()

    created = client.post(f"{API}/receivables", json={"journal_entry_id": entry["id"], "due_date": "2025-02-14"})
    assert created.status_code == 201
    assert created.json()["payment_status"] == "unpaid"
    assert Decimal(created.json()["remaining_amount"]) == Decimal("100000")

    duplicate = client.post(f"{API}/receivables", json={"journal_entry_id": entry["id"]})
    assert duplicate.status_code == 409
    assert duplicate.json()["detail"]["kind"] == "conflict"

    # Nothing was credited to 331
    assert client.post(f"{API}/payables", json={"journal_entry_id": entry["id"]}).status_code == 400

    # The open receivable now holds the entry in place
    assert client.delete(f"{API}/journal-entries/{entry['id']}").status_code == 409


def test_receivable_aging_route(client: TestClient):
    client.post(f"{API}/post-sale", json=_order_payload(
        id="7003", payment_method="credit", customer_id="C-3", customer_name="Chi",
    ))

    response = client.get(f"{API}/receivables/aging", params={"as_of": "2025-05-01"})

    assert response.status_code == 200
    body = response.json()
    # Due 2025-04-09, 22 days overdue
    assert Decimal(body["buckets"]["1-30"]) == Decimal("500000")
    assert body["items"][0]["days_overdue"] == 22


def test_unknown_receivable(client: TestClient):
    assert client.get(f"{API}/receivables/{uuid4()}").status_code == 404
    assert client.post(f"{API}/payables/{uuid4()}/payments", json={"amount": "10"}).status_code == 404


def test_payment_notification(client: TestClient, publisher):
    client.post(f"{API}/post-sale", json=_order_payload(
        id="7004", payment_method="credit", customer_id="C-4", customer_name="Dung",
    ))

    unmatched = client.post(f"{API}/payment-notifications", json={"amount": "500000", "reference": "nope"})
    assert unmatched.status_code == 404

    matched = client.post(f"{API}/payment-notifications", json={
        "amount": "500000",
        "reference": "SO-7004",
        "received_at": "2025-03-12T10:00:00",
    })
    assert matched.status_code == 200
    assert matched.json()["payment_status"] == "paid"
    assert matched.json()["journal_entry"]["entry_date"] == "2025-03-12"
    assert publisher.topics() == ["receivable.payment_settled"]


# Fixed assets

def test_fixed_asset_and_depreciation_routes(client: TestClient):
    created = client.post(f"{API}/fixed-assets", json={
        "asset_code": "FA-CAM",
        "name": "Product camera",
        "original_cost": "24000000",
        "purchase_date": "2025-01-03",
        "useful_life": 24,
    })
    assert created.status_code == 201
    asset_id = created.json()["id"]

    run = client.post(f"{API}/depreciation/calculate", json={"month": "2025-01"})
    assert run.status_code == 200
    assert Decimal(run.json()["total_amount"]) == Decimal("1000000")

    repeat = client.post(f"{API}/depreciation/calculate", json={"month": "2025-01"})
    assert repeat.json()["posted"] == []

    asset = client.get(f"{API}/fixed-assets/{asset_id}").json()
    assert Decimal(asset["book_value"]) == Decimal("23000000")
    assert [h["month"] for h in asset["history"]] == ["2025-01"]

    assert client.get(f"{API}/fixed-assets", params={"asset_status": "active"}).json()[0]["id"] == asset_id
    assert client.get(f"{API}/fixed-assets/{uuid4()}").status_code == 404


def test_depreciation_month_format(client: TestClient):
    assert client.post(f"{API}/depreciation/calculate", json={"month": "2025-13"}).status_code == 422


# Periods

def test_close_period_route(client: TestClient, publisher):
    client.post(f"{API}/journal-entries", json=_entry_payload(entry_date="2025-01-10", amount="800000"))
    period = client.post(f"{API}/periods", json={
        "name": "2025-01", "start_date": "2025-01-01", "end_date": "2025-01-31",
    })
    assert period.status_code == 201
    period_id = period.json()["id"]

    closed = client.post(f"{API}/close-period", json={"period_id": period_id, "closed_by": "accountant"})
    assert closed.status_code == 200
    body = closed.json()
    assert body["period"]["status"] == "closed"
    assert Decimal(body["net_profit"]) == Decimal("800000")
    assert [e["entry_type"] for e in body["entries"]] == ["closing", "closing"]
    assert publisher.topics() == ["period.closed"]

    assert client.post(f"{API}/close-period", json={"period_id": period_id}).status_code == 409
    locked = client.post(f"{API}/journal-entries", json=_entry_payload(entry_date="2025-01-20"))
    assert locked.status_code == 409
    assert locked.json()["detail"]["kind"] == "state_error"

    assert [p["id"] for p in client.get(f"{API}/periods", params={"period_status": "closed"}).json()] == [period_id]


def test_create_period_rejects_inverted_range(client: TestClient):
    response = client.post(f"{API}/periods", json={
        "name": "Bad", "start_date": "2025-02-01", "end_date": "2025-01-01",
    })
    assert response.status_code == 400


# Reports

def test_report_routes(client: TestClient):
    client.post(f"{API}/journal-entries", json=_entry_payload(entry_date="2025-01-10", amount="1000000"))
    client.post(f"{API}/journal-entries", json=_entry_payload(
        entry_date="2025-01-11", amount="400000", debit="641", credit="1121",
    ))

    trial = client.get(f"{API}/trial-balance")
    assert trial.status_code == 200
    assert trial.json()["is_balanced"] is True

    ledger = client.get(f"{API}/account-ledger/1121")
    assert Decimal(ledger.json()["ending_balance"]) == Decimal("600000")
    assert client.get(f"{API}/account-ledger/000").status_code == 404

    sheet = client.get(f"{API}/balance-sheet", params={"as_of": "2025-01-31"})
    assert sheet.json()["is_balanced"] is True

    pnl = client.get(f"{API}/profit-loss", params={"date_from": "2025-01-01", "date_to": "2025-01-31"})
    assert Decimal(pnl.json()["profit_before_tax"]) == Decimal("600000")
    assert Decimal(pnl.json()["income_tax"]) == Decimal("120000")


@pytest.mark.parametrize("path", ["trial-balance", "profit-loss"])
def test_inverted_report_range(client: TestClient, path):
    response = client.get(f"{API}/{path}", params={"date_from": "2025-02-01", "date_to": "2025-01-01"})
    assert response.status_code == 400


def test_profit_loss_requires_dates(client: TestClient):
    assert client.get(f"{API}/profit-loss").status_code == 422


# Health

def test_liveness_and_root(client: TestClient):
    assert client.get("/api/v1/health/live").json() == {"status": "alive"}
    assert client.get("/api/v1/health/ready").json() == {"status": "ready"}
    assert client.get("/").json()["docs"] == "/docs"
