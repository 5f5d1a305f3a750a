from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any
from zoneinfo import ZoneInfo

from django import forms
from django.conf import settings
from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from apps.common.cnpj import normalize_cnpj
from apps.common.errors import Conflict, InvalidInput, NotFound
from apps.common.http import json_body, validated
from apps.common.money import brl, decimal_str, to_cents
from apps.common.phone import whatsapp_digits
from apps.common.realtime import get_store

from . import menu
from .services import NODES

log = logging.getLogger(__name__)


def _menu_now():
    return timezone.localtime(timezone.now(), ZoneInfo(settings.MENU_TIME_ZONE))


def _cnpj_param(request) -> str:
    raw = (request.GET.get("id") or "").strip()
    if not raw:
        raise InvalidInput("Cardápio não informado. Use o link completo enviado pelo restaurante.")
    try:
        return normalize_cnpj(raw)
    except ValueError:
        raise NotFound("Cardápio não encontrado.")


def load_menu(cnpj: str) -> dict[str, Any]:
    """Read the tenant and its four catalog collections in parallel.

    Any failing read propagates, so callers never see a partial snapshot.
    """
    store = get_store()
    paths = {
        "tenant": f"users/{cnpj}",
        "categories": f"{NODES['categories']}/{cnpj}",
        "products": f"{NODES['products']}/{cnpj}",
        "addons": f"{NODES['addons']}/{cnpj}",
        "images": f"{NODES['images']}/{cnpj}",
    }
    with ThreadPoolExecutor(max_workers=len(paths)) as pool:
        futures = {key: pool.submit(store.get, path) for key, path in paths.items()}
        snapshot = {key: f.result() for key, f in futures.items()}
    if not snapshot["tenant"]:
        raise NotFound("Cardápio não encontrado.")
    for key in ("categories", "products", "addons", "images"):
        snapshot[key] = snapshot[key] or {}
    return snapshot


def _whatsapp_target(tenant: dict) -> str | None:
    if not tenant.get("receive_orders_by_whatsapp"):
        return None
    number = tenant.get("whatsapp_order_number") or tenant.get("whatsapp")
    if not number:
        return None
    try:
        return whatsapp_digits(number)
    except ValueError:
        log.warning("[menu] Invalid WhatsApp number stored for %s", tenant.get("cnpj"))
        return None


def _money(cents: int) -> dict:
    return {"price_cents": cents, "price": decimal_str(cents), "price_display": brl(cents)}


@require_GET
def menu_public(request):
    cnpj = _cnpj_param(request)
    snap = load_menu(cnpj)
    tenant = snap["tenant"]
    open_now = menu.is_open(tenant.get("hours"), _menu_now())
    addons = {aid: dict(name=a.get("name"), description=a.get("description", ""), **_money(a.get("price_cents", 0)))
              for aid, a in snap["addons"].items()}

    by_category: dict[str, list] = {cid: [] for cid in snap["categories"]}
    for pid, p in snap["products"].items():
        if not p.get("is_visible", True) or p.get("category_id") not in by_category:
            continue
        image = snap["images"].get(p.get("image_id") or "") or {}
        by_category[p["category_id"]].append({
            "id": pid,
            "name": p.get("name"),
            "description": p.get("description", ""),
            "image": image.get("path"),
            "addons": [dict(addons[a], id=a) for a in sorted(p.get("addon_ids") or {}) if a in addons],
            **_money(p.get("price_cents", 0)),
        })

    categories = [
        {"id": cid, "name": c.get("name"), "products": sorted(by_category[cid], key=lambda x: x["name"] or "")}
        for cid, c in sorted(snap["categories"].items(), key=lambda kv: kv[1].get("name") or "")
    ]
    return JsonResponse({
        "restaurant": {
            "id": cnpj,
            "name": tenant.get("restaurant_name"),
            "address": tenant.get("address") or {},
            "phone": tenant.get("phone", ""),
            "whatsapp": tenant.get("whatsapp", ""),
            "delivery": bool(tenant.get("delivery")),
            "hours": tenant.get("hours") or {},
            "is_open": open_now,
            "can_order": open_now and _whatsapp_target(tenant) is not None,
        },
        "categories": categories,
    })


class OrderForm(forms.Form):
    FULFILLMENT_CHOICES = [("delivery", "Entrega"), ("pickup", "Retirada")]
    PAYMENT_CHOICES = [("pix", "Pix"), ("card", "Cartão"), ("cash", "Dinheiro")]

    customer_name = forms.CharField(min_length=2, max_length=120)
    fulfillment = forms.ChoiceField(choices=FULFILLMENT_CHOICES)
    payment_method = forms.ChoiceField(choices=PAYMENT_CHOICES)
    change_for = forms.DecimalField(max_digits=10, decimal_places=2, required=False, min_value=0)
    notes = forms.CharField(max_length=280, required=False)


class DeliveryAddressForm(forms.Form):
    street = forms.CharField(min_length=2, max_length=160)
    number = forms.CharField(max_length=20)
    complement = forms.CharField(max_length=120, required=False)
    neighborhood = forms.CharField(min_length=2, max_length=120)
    reference = forms.CharField(max_length=160, required=False)


def build_cart(snap: dict, items: Any) -> list[menu.CartLine]:
    if not isinstance(items, list) or not items:
        raise InvalidInput("Carrinho vazio.", fields={"items": ["Adicione itens."]})
    lines = []
    for n, entry in enumerate(items):
        if not isinstance(entry, dict):
            raise InvalidInput(fields={"items": [f"Item {n + 1} inválido."]})
        product = snap["products"].get(str(entry.get("product_id")))
        if not product or not product.get("is_visible", True):
            raise InvalidInput(fields={"items": [f"Item {n + 1}: produto indisponível."]})
        qty = entry.get("quantity", 1)
        if isinstance(qty, bool) or not isinstance(qty, int) or qty < 1:
            raise InvalidInput(fields={"items": [f"Item {n + 1}: quantidade inválida."]})
        addon_ids = entry.get("addon_ids") or []
        if not isinstance(addon_ids, list) or not all(isinstance(a, str) for a in addon_ids):
            raise InvalidInput(fields={"items": [f"Item {n + 1}: adicionais inválidos."]})
        allowed = product.get("addon_ids") or {}
        chosen = []
        for addon_id in dict.fromkeys(addon_ids):
            addon = snap["addons"].get(addon_id)
            if addon_id not in allowed or not addon:
                raise InvalidInput(fields={"items": [f"Item {n + 1}: adicional inválido."]})
            chosen.append((addon.get("name"), int(addon.get("price_cents", 0))))
        lines.append(menu.CartLine(
            product_id=str(entry["product_id"]),
            name=product.get("name"),
            quantity=qty,
            unit_price_cents=int(product.get("price_cents", 0)),
            addons=chosen,
        ))
    return lines


@csrf_exempt
@require_POST
def order_public(request):
    cnpj = _cnpj_param(request)
    data = json_body(request)
    snap = load_menu(cnpj)
    tenant = snap["tenant"]

    if not menu.is_open(tenant.get("hours"), _menu_now()):
        raise Conflict("Restaurante fechado no momento.")
    target = _whatsapp_target(tenant)
    if not target:
        raise Conflict("Este restaurante não recebe pedidos pelo WhatsApp.")

    order = validated(OrderForm(data))
    lines = build_cart(snap, data.get("items"))
    total = menu.cart_total_cents(lines)

    address = None
    if order["fulfillment"] == "delivery":
        if not tenant.get("delivery"):
            raise InvalidInput("Este restaurante não faz entregas.", fields={"fulfillment": ["Escolha retirada."]})
        address = validated(DeliveryAddressForm(data.get("address") or {}))

    change_for = None
    if order["payment_method"] == "cash" and order.get("change_for"):
        change_for = to_cents(order["change_for"])
        if change_for < total:
            raise InvalidInput(fields={"change_for": ["Troco deve ser maior ou igual ao total."]})

    message = menu.build_order_message(
        restaurant_name=tenant.get("restaurant_name") or "",
        lines=lines,
        customer_name=order["customer_name"],
        fulfillment=order["fulfillment"],
        payment_method=order["payment_method"],
        address=address,
        change_for_cents=change_for,
        notes=order.get("notes") or "",
    )
    log.info("[menu] Order message built cnpj=%s lines=%s total=%s", cnpj, len(lines), total)
    return JsonResponse({
        "lines": [
            {"product_id": l.product_id, "name": l.name, "quantity": l.quantity,
             "addons": [name for name, _ in l.addons], "total_cents": l.total_cents}
            for l in lines
        ],
        "total_cents": total,
        "total_display": brl(total),
        "message": message,
        "whatsapp_url": menu.whatsapp_link(target, message),
    })
