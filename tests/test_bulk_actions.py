from types import SimpleNamespace

from invoicing.models.db import Payment


def test_bulk_archive_and_restore(client, account, create_payment):
    a = create_payment(account, amount="1")
    b = create_payment(account, amount="2")

    resp = client.post(
        "/api/v1/payments/bulk",
        json={"action": "archive", "ids": [a["id"], b["id"]]},
        headers=account.headers,
    )
    assert resp.status_code == 200, resp.text
    data = resp.json()["data"]
    assert [row["id"] for row in data] == [a["id"], b["id"]]
    assert all(row["archived_at"] > 0 for row in data)
    assert all(row["is_deleted"] is False for row in data)

    resp = client.post(
        "/api/v1/payments/bulk",
        json={"action": "restore", "ids": [a["id"]]},
        headers=account.headers,
    )
    assert resp.json()["data"][0]["archived_at"] == 0


def test_bulk_ignores_malformed_and_foreign_ids(client, account, create_payment, company_factory, user_factory, client_factory):
    mine = create_payment(account, amount="3")

    other_company = company_factory()
    other_admin = user_factory(other_company)
    other_client = client_factory(other_company, other_admin)
    other_account = SimpleNamespace(
        company=other_company, user=other_admin, client=other_client,
        headers={"Authorization": f"Bearer {other_admin.api_key}"},
    )
    foreign = create_payment(other_account, amount="4")

    resp = client.post(
        "/api/v1/payments/bulk",
        json={"action": "archive", "ids": ["garbage", mine["id"], foreign["id"]]},
        headers=account.headers,
    )
    assert resp.status_code == 200
    assert [row["id"] for row in resp.json()["data"]] == [mine["id"]]

    untouched = client.get(f"/api/v1/payments/{foreign['id']}", headers=other_account.headers).json()["data"]
    assert untouched["archived_at"] == 0


def test_bulk_with_only_invalid_ids_returns_empty_list(client, account):
    resp = client.post(
        "/api/v1/payments/bulk",
        json={"action": "delete", "ids": ["x", "y"]},
        headers=account.headers,
    )
    assert resp.status_code == 200
    assert resp.json()["data"] == []


def test_bulk_skips_entities_caller_cannot_edit(client, account, create_payment, user_factory):
    payment = create_payment(account, amount="5")
    viewer = user_factory(account.company, is_admin=False, permissions="view_payment")
    resp = client.post(
        "/api/v1/payments/bulk",
        json={"action": "archive", "ids": [payment["id"]]},
        headers={"Authorization": f"Bearer {viewer.api_key}"},
    )
    assert resp.status_code == 200
    rows = resp.json()["data"]
    assert len(rows) == 1 and rows[0]["archived_at"] == 0


def test_bulk_delete_reverses_payments(client, account, invoice_factory, create_payment, db_session, encoder):
    invoice = invoice_factory(account.client, amount="30")
    payment = create_payment(account, amount="30", invoices=[(invoice, "30")])
    resp = client.post(
        "/api/v1/payments/bulk",
        json={"action": "delete", "ids": [payment["id"]]},
        headers=account.headers,
    )
    assert resp.json()["data"][0]["is_deleted"] is True
    db_session.expire_all()
    row = db_session.get(Payment, encoder.decode(payment["id"]))
    assert row.is_deleted is True
    assert row.paymentables[0].invoice.balance == 30


def test_deleted_payment_cannot_be_restored(client, account, create_payment):
    payment = create_payment(account, amount="6")
    client.post("/api/v1/payments/bulk", json={"action": "delete", "ids": [payment["id"]]}, headers=account.headers)
    resp = client.post("/api/v1/payments/bulk", json={"action": "restore", "ids": [payment["id"]]}, headers=account.headers)
    row = resp.json()["data"][0]
    assert row["is_deleted"] is True
    assert row["archived_at"] > 0


def test_unknown_bulk_action_rejected(client, account, create_payment):
    payment = create_payment(account, amount="1")
    resp = client.post(
        "/api/v1/payments/bulk",
        json={"action": "explode", "ids": [payment["id"]]},
        headers=account.headers,
    )
    assert resp.status_code == 422
