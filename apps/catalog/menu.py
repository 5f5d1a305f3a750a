"""Public ordering rules: opening hours, cart pricing and the WhatsApp order text.

All money is integer cents.
"""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Iterable, Optional
from urllib.parse import quote

from apps.common.money import brl

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
DAY_MINUTES = 24 * 60

PAYMENT_LABELS = {"pix": "Pix", "card": "Cartão", "cash": "Dinheiro"}


def _minutes(hhmm: str) -> int:
    h, m = hhmm.split(":")
    return int(h) * 60 + int(m)


def is_open(hours: Optional[dict], now: dt.datetime) -> bool:
    """Whether the schedule entry for ``now``'s weekday covers ``now``.

    A close time earlier than the open time means the window runs past
    midnight (18:00-02:00). The post-midnight part is matched against the
    same weekday's entry.
    """
    day = (hours or {}).get(WEEKDAYS[now.weekday()])
    if not day or not day.get("is_open"):
        return False
    try:
        open_min = _minutes(day["open_time"])
        close_min = _minutes(day["close_time"])
    except (KeyError, TypeError, ValueError):
        return False
    current = now.hour * 60 + now.minute
    if close_min < open_min:
        close_min += DAY_MINUTES
        if current < open_min:
            current += DAY_MINUTES
    return open_min <= current < close_min


def line_total_cents(price_cents: int, addon_cents: Iterable[int], quantity: int) -> int:
    return (int(price_cents) + sum(int(c) for c in addon_cents)) * int(quantity)


@dataclass
class CartLine:
    product_id: str
    name: str
    quantity: int
    unit_price_cents: int
    addons: list[tuple[str, int]] = field(default_factory=list)

    @property
    def total_cents(self) -> int:
        return line_total_cents(self.unit_price_cents, (p for _, p in self.addons), self.quantity)


def cart_total_cents(lines: Iterable[CartLine]) -> int:
    return sum(line.total_cents for line in lines)


def _address_line(address: dict) -> str:
    street = ", ".join(p for p in [address.get("street"), address.get("number")] if p)
    parts = [street, address.get("complement"), address.get("neighborhood"), address.get("reference")]
    return " - ".join(p for p in parts if p)


def build_order_message(
    *,
    restaurant_name: str,
    lines: list[CartLine],
    customer_name: str,
    fulfillment: str,
    payment_method: str,
    address: Optional[dict] = None,
    change_for_cents: Optional[int] = None,
    notes: str = "",
) -> str:
    total = cart_total_cents(lines)
    out = [f"*Novo pedido - {restaurant_name}*", ""]
    for line in lines:
        out.append(f"{line.quantity}x {line.name} ({brl(line.unit_price_cents)})")
        for addon_name, addon_price in line.addons:
            out.append(f"   + {addon_name} ({brl(addon_price)})")
        out.append(f"   Subtotal: {brl(line.total_cents)}")
    out += ["", f"*Total: {brl(total)}*", "", f"Cliente: {customer_name}"]
    if fulfillment == "delivery" and address:
        out.append(f"Entrega: {_address_line(address)}")
    else:
        out.append("Retirada no local")
    payment = PAYMENT_LABELS.get(payment_method, payment_method)
    if payment_method == "cash" and change_for_cents:
        out.append(f"Pagamento: {payment} (troco para {brl(change_for_cents)}, levar {brl(change_for_cents - total)})")
    elif payment_method == "cash":
        out.append(f"Pagamento: {payment} (sem troco)")
    else:
        out.append(f"Pagamento: {payment}")
    if notes:
        out.append(f"Observações: {notes}")
    return "\n".join(out)


def whatsapp_link(digits: str, message: str) -> str:
    return f"https://wa.me/{digits}?text={quote(message, safe='')}"
