import pytest

from invoicing.services.payment_actions import PaymentAction

NO_OP_ACTIONS = [
    "clone_to_invoice", "clone_to_quote", "history", "delivery_note", "mark_paid", "download", "email",
]


def test_archive_action(client, account, create_payment):
    payment = create_payment(account, amount="12")
    resp = client.get(f"/api/v1/payments/{payment['id']}/archive", headers=account.headers)
    assert resp.status_code == 200, resp.text
    assert resp.json()["data"]["archived_at"] > 0
    assert resp.json()["data"]["is_deleted"] is False


def test_delete_action_reverses_and_deletes(client, account, create_payment, invoice_factory):
    invoice = invoice_factory(account.client, amount="12")
    payment = create_payment(account, amount="12", invoices=[(invoice, "12")])
    resp = client.get(f"/api/v1/payments/{payment['id']}/delete", headers=account.headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["is_deleted"] is True


@pytest.mark.parametrize("action", NO_OP_ACTIONS)
def test_registered_actions_leave_payment_unchanged(client, account, create_payment, action):
    payment = create_payment(account, amount="9", number="NOOP")
    resp = client.get(f"/api/v1/payments/{payment['id']}/{action}", headers=account.headers)
    assert resp.status_code == 200, resp.text
    assert resp.json()["data"] == payment


def test_unknown_action_is_rejected(client, account, create_payment):
    payment = create_payment(account, amount="9")
    resp = client.get(f"/api/v1/payments/{payment['id']}/teleport", headers=account.headers)
    assert resp.status_code == 422


def test_action_on_unknown_payment_is_404(client, account):
    assert client.get("/api/v1/payments/bogus/archive", headers=account.headers).status_code == 404


def test_every_action_has_a_handler():
    from invoicing.repositories.payments import PaymentRepository
    from invoicing.services.payment_actions import payment_action_table
    from invoicing.utils.hashing import IdentifierEncoder

    table = payment_action_table(PaymentRepository(IdentifierEncoder("s")))
    assert set(table) == set(PaymentAction)
