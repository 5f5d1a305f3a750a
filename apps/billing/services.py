from __future__ import annotations

import logging
from typing import Any, Optional

import stripe
from django.conf import settings

from apps.accounts.tenants import find_cnpj_by_customer_id, find_tenant, get_tenant, tenant_path, update_tenant
from apps.common.errors import InvalidInput, UpstreamError
from apps.common.realtime import get_store

log = logging.getLogger(__name__)

ACTIVE = "active"
# Local sentinel, never sent by Stripe: resync found no active subscription
INACTIVE = "inactive"

SUBSCRIPTION_EVENTS = {
    "customer.subscription.created",
    "customer.subscription.updated",
    "customer.subscription.deleted",
    "customer.subscription.paused",
    "customer.subscription.resumed",
}


def _id(value: Any) -> Optional[str]:
    """Stripe fields like ``customer`` are either an id or an expanded object."""
    if value is None or isinstance(value, str):
        return value
    return value["id"]


def normalize_subscription(sub) -> dict:
    items = (sub.get("items") or {}).get("data") or []
    first = items[0] if items else {}
    price = first.get("price") or {}
    period_end = sub.get("current_period_end")
    if period_end is None:
        # API versions from 2025-03-31 report the period per item
        period_end = first.get("current_period_end")
    return {
        "stripe_subscription_id": sub["id"],
        "stripe_customer_id": _id(sub.get("customer")),
        "stripe_price_id": price.get("id"),
        "current_period_end": period_end,
        "status": sub.get("status"),
        "cancel_at_period_end": bool(sub.get("cancel_at_period_end")),
    }


def resolve_cnpj(metadata, customer_id: Optional[str]) -> Optional[str]:
    cnpj = (metadata or {}).get("cnpj")
    if cnpj and find_tenant(cnpj):
        return cnpj
    if cnpj:
        log.warning("[webhook] Metadata cnpj=%s has no tenant record; trying customer id", cnpj)
    # Dashboard-initiated changes carry no metadata
    return find_cnpj_by_customer_id(customer_id)


def apply_subscription(cnpj: str, sub) -> dict:
    """Overwrite the tenant's subscription with the Stripe state, in one write."""
    data = normalize_subscription(sub)
    get_store().update(tenant_path(cnpj), {
        "stripe_customer_id": data["stripe_customer_id"],
        "subscription": data,
    })
    log.info("[billing] Subscription %s for cnpj=%s status=%s", data["stripe_subscription_id"], cnpj, data["status"])
    return data


def reconcile_event(event) -> Optional[str]:
    """Apply a verified webhook event; return the cnpj it was applied to.

    Returns None when the event is ignored or no tenant could be resolved.
    """
    kind = event["type"]
    obj = event["data"]["object"]

    if kind == "checkout.session.completed":
        if obj.get("mode") != "subscription" or not obj.get("subscription"):
            log.info("[webhook] Ignoring non-subscription checkout %s", obj.get("id"))
            return None
        sub = stripe.Subscription.retrieve(_id(obj["subscription"]))
        metadata = {**(sub.get("metadata") or {}), **(obj.get("metadata") or {})}
    elif kind in SUBSCRIPTION_EVENTS:
        sub = obj
        metadata = sub.get("metadata") or {}
    else:
        log.info("[webhook] Unhandled event type %s", kind)
        return None

    cnpj = resolve_cnpj(metadata, _id(sub.get("customer")))
    if not cnpj:
        log.error(
            "[webhook] Unreconciled %s: no tenant for subscription=%s customer=%s",
            kind, sub.get("id"), _id(sub.get("customer")),
        )
        return None
    apply_subscription(cnpj, sub)
    return cnpj


def _stripe_call(fn, *args, **kwargs):
    try:
        return fn(*args, **kwargs)
    except stripe.StripeError as e:
        log.error("[billing] Stripe call %s failed: %s", getattr(fn, "__qualname__", fn), e)
        raise UpstreamError(getattr(e, "user_message", None) or str(e))


def get_or_create_stripe_customer(cnpj: str, tenant: dict) -> str:
    customer_id = tenant.get("stripe_customer_id")
    if customer_id:
        return customer_id
    log.info("[billing] Creating Stripe customer for cnpj=%s", cnpj)
    customer = _stripe_call(
        stripe.Customer.create,
        email=tenant.get("email") or None,
        name=tenant.get("restaurant_name") or tenant.get("owner_name"),
        metadata={"cnpj": cnpj},
    )
    customer_id = customer["id"]
    # Persist right away: webhooks without metadata are matched on this id
    update_tenant(cnpj, {"stripe_customer_id": customer_id})
    tenant["stripe_customer_id"] = customer_id
    log.info("[billing] Created Stripe customer id=%s for cnpj=%s", customer_id, cnpj)
    return customer_id


def subscription_status(tenant: dict) -> Optional[str]:
    return (tenant.get("subscription") or {}).get("status")


def start_billing_session(cnpj: str, price_id: Optional[str] = None) -> dict:
    """Checkout for tenants without an active plan, billing portal otherwise."""
    tenant = get_tenant(cnpj)
    base = settings.DASHBOARD_BASE_URL.rstrip("/")
    if subscription_status(tenant) == ACTIVE:
        customer_id = get_or_create_stripe_customer(cnpj, tenant)
        session = _stripe_call(
            stripe.billing_portal.Session.create,
            customer=customer_id,
            return_url=f"{base}/dashboard/subscription",
        )
        log.info("[billing] Portal session for cnpj=%s customer=%s", cnpj, customer_id)
        return {"url": session["url"], "kind": "portal"}

    price_id = price_id or settings.STRIPE_DEFAULT_PRICE_ID
    if not price_id:
        raise InvalidInput("Price ID é obrigatório", fields={"price_id": ["Campo obrigatório."]})
    customer_id = get_or_create_stripe_customer(cnpj, tenant)
    session = _stripe_call(
        stripe.checkout.Session.create,
        mode="subscription",
        customer=customer_id,
        line_items=[{"price": price_id, "quantity": 1}],
        customer_update={"name": "auto", "address": "auto"},
        success_url=f"{base}/dashboard/subscription?success=true&session_id={{CHECKOUT_SESSION_ID}}",
        cancel_url=f"{base}/dashboard/subscription?canceled=true",
        metadata={"cnpj": cnpj},
        subscription_data={"metadata": {"cnpj": cnpj}},
    )
    if not session.get("url"):
        raise UpstreamError("Não foi possível criar a sessão no Stripe")
    log.info("[billing] Checkout session %s for cnpj=%s price=%s", session.get("id"), cnpj, price_id)
    return {"url": session["url"], "kind": "checkout"}


def _find_customer_id(tenant: dict) -> Optional[str]:
    if tenant.get("stripe_customer_id"):
        return tenant["stripe_customer_id"]
    email = tenant.get("email")
    if not email:
        return None
    customers = _stripe_call(stripe.Customer.list, email=email, limit=1)
    data = customers.get("data") or []
    return data[0]["id"] if data else None


def sync_subscription(cnpj: str) -> dict:
    """Pull the tenant's active subscription from Stripe and store it."""
    tenant = get_tenant(cnpj)
    customer_id = _find_customer_id(tenant)
    if not customer_id:
        log.info("[billing] Sync cnpj=%s: no Stripe customer", cnpj)
        return {"synced": False, "status": subscription_status(tenant)}

    subs = _stripe_call(stripe.Subscription.list, customer=customer_id, status=ACTIVE, limit=1)
    data = subs.get("data") or []
    if data:
        sub = apply_subscription(cnpj, data[0])
        return {"synced": True, "status": sub["status"]}

    get_store().update(tenant_path(cnpj), {
        "stripe_customer_id": customer_id,
        "subscription/status": INACTIVE,
    })
    log.info("[billing] Sync cnpj=%s: no active subscription, marked inactive", cnpj)
    return {"synced": True, "status": INACTIVE}


def cancel_at_period_end(cnpj: str) -> dict:
    tenant = get_tenant(cnpj)
    sub_id = (tenant.get("subscription") or {}).get("stripe_subscription_id")
    if not sub_id:
        raise InvalidInput("ID de assinatura não encontrado para este usuário")
    _stripe_call(stripe.Subscription.modify, sub_id, cancel_at_period_end=True)
    # customer.subscription.updated will carry the new flag back
    log.info("[billing] Cancellation scheduled for subscription=%s cnpj=%s", sub_id, cnpj)
    return {"subscription_id": sub_id, "cancel_at_period_end": True}


def list_invoices(cnpj: str, limit: int = 20) -> list[dict]:
    tenant = get_tenant(cnpj)
    customer_id = tenant.get("stripe_customer_id")
    if not customer_id:
        return []
    invoices = _stripe_call(stripe.Invoice.list, customer=customer_id, limit=limit)
    return [
        {
            "id": inv["id"],
            "number": inv.get("number"),
            "status": inv.get("status"),
            "amount_due": inv.get("amount_due"),
            "amount_paid": inv.get("amount_paid"),
            "currency": inv.get("currency"),
            "created": inv.get("created"),
            "hosted_invoice_url": inv.get("hosted_invoice_url"),
            "invoice_pdf": inv.get("invoice_pdf"),
        }
        for inv in invoices.get("data") or []
    ]
