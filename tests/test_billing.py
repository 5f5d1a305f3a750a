import types

import pytest
from django.urls import reverse
from django.core.management import call_command

import stripe

from conftest import CNPJ, subscription


@pytest.fixture(autouse=True)
def billing_settings(settings):
    settings.DASHBOARD_BASE_URL = "https://app.example.com"
    settings.STRIPE_DEFAULT_PRICE_ID = "price_basic"


def test_requires_auth(client, tenant):
    r = client.post(reverse("billing:session"), data={}, content_type="application/json")
    assert r.status_code == 401


def test_checkout_creates_and_persists_customer(client, store, auth, dummy_stripe):
    r = client.post(reverse("billing:session"), data={}, content_type="application/json", **auth)
    assert r.status_code == 200
    body = r.json()
    assert body["kind"] == "checkout"
    assert body["url"].startswith("https://checkout.stripe.test/")

    assert store.get(f"users/{CNPJ}/stripe_customer_id") == "cus_000001"
    assert dummy_stripe.customers["cus_000001"]["metadata"] == {"cnpj": CNPJ}
    session = dummy_stripe.checkout_sessions[0]
    assert session["mode"] == "subscription"
    assert session["customer"] == "cus_000001"
    assert session["line_items"] == [{"price": "price_basic", "quantity": 1}]
    assert session["metadata"] == {"cnpj": CNPJ}
    assert session["subscription_data"] == {"metadata": {"cnpj": CNPJ}}
    assert session["cancel_url"] == "https://app.example.com/dashboard/subscription?canceled=true"


def test_checkout_reuses_stored_customer(client, store, auth, dummy_stripe):
    store.update(f"users/{CNPJ}", {"stripe_customer_id": "cus_existing"})
    r = client.post(reverse("billing:session"), data={"price_id": "price_pro"}, content_type="application/json", **auth)
    assert r.status_code == 200
    assert dummy_stripe.customers == {}
    assert dummy_stripe.checkout_sessions[0]["customer"] == "cus_existing"
    assert dummy_stripe.checkout_sessions[0]["line_items"][0]["price"] == "price_pro"


def test_active_subscription_opens_portal(client, store, auth, dummy_stripe):
    store.update(f"users/{CNPJ}", {"stripe_customer_id": "cus_existing", "subscription": {"status": "active"}})
    r = client.post(reverse("billing:session"), data={}, content_type="application/json", **auth)
    assert r.status_code == 200
    assert r.json() == {"url": "https://billing.stripe.test/p/session", "kind": "portal"}
    assert dummy_stripe.customers == {}
    assert dummy_stripe.checkout_sessions == []
    assert dummy_stripe.portal_sessions[0]["return_url"] == "https://app.example.com/dashboard/subscription"


def test_missing_price_is_rejected(client, settings, auth, dummy_stripe):
    settings.STRIPE_DEFAULT_PRICE_ID = ""
    r = client.post(reverse("billing:session"), data={}, content_type="application/json", **auth)
    assert r.status_code == 400
    assert "price_id" in r.json()["fields"]
    assert dummy_stripe.checkout_sessions == []


def test_stripe_failure_maps_to_502(client, auth, dummy_stripe, monkeypatch):
    import apps.billing.services as s

    def fail(**kw):
        raise stripe.StripeError("boom")

    monkeypatch.setattr(s.stripe.checkout.Session, "create", fail)
    r = client.post(reverse("billing:session"), data={}, content_type="application/json", **auth)
    assert r.status_code == 502
    assert "error" in r.json()


def test_subscription_view(client, store, auth):
    store.update(f"users/{CNPJ}", {"subscription": {"status": "trialing"}})
    r = client.get(reverse("billing:subscription"), **auth)
    assert r.status_code == 200
    assert r.json() == {"subscription": {"status": "trialing"}}


def test_sync_stores_active_subscription(client, store, auth, dummy_stripe):
    store.update(f"users/{CNPJ}", {"stripe_customer_id": "cus_000001"})
    dummy_stripe.subscriptions["sub_1"] = subscription()
    r = client.post(reverse("billing:sync"), **auth)
    assert r.status_code == 200
    assert r.json() == {"synced": True, "status": "active"}
    assert store.get(f"users/{CNPJ}/subscription/stripe_subscription_id") == "sub_1"


def test_sync_finds_customer_by_email(client, store, auth, dummy_stripe):
    dummy_stripe.customers["cus_000001"] = {"email": "maria@example.com"}
    r = client.post(reverse("billing:sync"), **auth)
    assert r.status_code == 200
    user = store.get(f"users/{CNPJ}")
    assert user["stripe_customer_id"] == "cus_000001"
    assert user["subscription"] == {"status": "inactive"}


def test_sync_marks_inactive_and_keeps_other_fields(client, store, auth, dummy_stripe):
    store.update(f"users/{CNPJ}", {
        "stripe_customer_id": "cus_000001",
        "subscription": {"stripe_subscription_id": "sub_old", "status": "active"},
    })
    dummy_stripe.subscriptions["sub_old"] = subscription(sub_id="sub_old", status="canceled")
    r = client.post(reverse("billing:sync"), **auth)
    assert r.json()["status"] == "inactive"
    assert store.get(f"users/{CNPJ}/subscription") == {"stripe_subscription_id": "sub_old", "status": "inactive"}


def test_sync_without_customer_writes_nothing(client, store, auth, dummy_stripe):
    before = store.get(f"users/{CNPJ}")
    r = client.post(reverse("billing:sync"), **auth)
    assert r.json() == {"synced": False, "status": None}
    assert store.get(f"users/{CNPJ}") == before


def test_cancel_at_period_end(client, store, auth, dummy_stripe):
    store.update(f"users/{CNPJ}", {"subscription": {"stripe_subscription_id": "sub_1", "status": "active"}})
    r = client.post(reverse("billing:cancel"), **auth)
    assert r.status_code == 200
    assert r.json()["cancel_at_period_end"] is True
    assert dummy_stripe.modified == [("sub_1", {"cancel_at_period_end": True})]


def test_cancel_without_subscription(client, auth, dummy_stripe):
    r = client.post(reverse("billing:cancel"), **auth)
    assert r.status_code == 400
    assert dummy_stripe.modified == []


def test_invoices(client, store, auth, dummy_stripe):
    r = client.get(reverse("billing:invoices"), **auth)
    assert r.json() == {"invoices": []}

    store.update(f"users/{CNPJ}", {"stripe_customer_id": "cus_000001"})
    dummy_stripe.invoices.append({
        "id": "in_1", "customer": "cus_000001", "number": "A-0001", "status": "paid",
        "amount_due": 4990, "amount_paid": 4990, "currency": "brl", "created": 1760000000,
        "hosted_invoice_url": "https://stripe.test/in_1", "invoice_pdf": None,
    })
    r = client.get(reverse("billing:invoices"), **auth)
    invoices = r.json()["invoices"]
    assert [i["id"] for i in invoices] == ["in_1"]
    assert invoices[0]["amount_paid"] == 4990


def test_billing_sync_command(store, tenant, dummy_stripe, capsys):
    store.update(f"users/{CNPJ}", {"stripe_customer_id": "cus_000001"})
    dummy_stripe.subscriptions["sub_1"] = subscription()
    store.set("users/99888777000166", {"auth_uid": "uid-2", "restaurant_name": "Sem Stripe"})
    call_command("billing_sync")
    out = capsys.readouterr().out
    assert CNPJ in out
    assert store.get(f"users/{CNPJ}/subscription/status") == "active"
    assert store.get("users/99888777000166/subscription") is None


def test_billing_watch_command(store, tenant, capsys, monkeypatch):
    import apps.billing.management.commands.billing_watch as watch

    def stop(_seconds):
        raise KeyboardInterrupt

    monkeypatch.setattr(watch, "time", types.SimpleNamespace(sleep=stop))
    store.update(f"users/{CNPJ}", {"subscription": {"status": "active"}})
    call_command("billing_watch", "12.345.678/0001-90")
    out = capsys.readouterr().out
    assert f"[put] users/{CNPJ}/subscription: {{'status': 'active'}}" in out
    assert store.listeners[0].closed is True
