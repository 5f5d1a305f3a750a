import datetime as dt
from urllib.parse import unquote

from apps.catalog import menu
from apps.common.money import brl, to_cents


# 2025-10-17 is a Friday
FRIDAY = dt.date(2025, 10, 17)
LATE_HOURS = {"friday": {"is_open": True, "open_time": "18:00", "close_time": "02:00"}}


def at(hour, minute=0, day=FRIDAY):
    return dt.datetime.combine(day, dt.time(hour, minute))


def test_overnight_window():
    assert menu.is_open(LATE_HOURS, at(23, 30))
    assert menu.is_open(LATE_HOURS, at(1, 0))
    assert not menu.is_open(LATE_HOURS, at(10, 0))
    assert not menu.is_open(LATE_HOURS, at(2, 0))
    assert menu.is_open(LATE_HOURS, at(18, 0))


def test_same_day_window():
    hours = {"friday": {"is_open": True, "open_time": "11:00", "close_time": "15:00"}}
    assert menu.is_open(hours, at(11, 0))
    assert menu.is_open(hours, at(14, 59))
    assert not menu.is_open(hours, at(15, 0))


def test_closed_or_missing_day():
    assert not menu.is_open({"friday": {"is_open": False, "open_time": "00:00", "close_time": "23:59"}}, at(12))
    assert not menu.is_open(LATE_HOURS, at(20, 0, day=dt.date(2025, 10, 18)))
    assert not menu.is_open(None, at(20))
    assert not menu.is_open({"friday": {"is_open": True}}, at(20))


def test_line_and_cart_totals():
    assert menu.line_total_cents(to_cents("25.00"), [to_cents("3.00")], 2) == 5600
    assert menu.cart_total_cents([]) == 0
    lines = [
        menu.CartLine("p1", "Pizza", 2, 2500, [("Borda", 300)]),
        menu.CartLine("p2", "Suco", 1, 850),
    ]
    assert menu.cart_total_cents(lines) == 6450


def test_money_helpers():
    assert to_cents("19.995") == 2000
    assert brl(123456) == "R$ 1.234,56"
    assert brl(5) == "R$ 0,05"


def test_order_message_delivery_with_change():
    lines = [menu.CartLine("p1", "Pizza Margherita", 2, 2500, [("Borda recheada", 300)])]
    msg = menu.build_order_message(
        restaurant_name="Cantina da Praça",
        lines=lines,
        customer_name="Ana",
        fulfillment="delivery",
        payment_method="cash",
        address={"street": "Rua das Flores", "number": "12", "neighborhood": "Boa Vista"},
        change_for_cents=10000,
        notes="Sem cebola",
    )
    assert msg.splitlines()[0] == "*Novo pedido - Cantina da Praça*"
    assert "2x Pizza Margherita (R$ 25,00)" in msg
    assert "   + Borda recheada (R$ 3,00)" in msg
    assert "   Subtotal: R$ 56,00" in msg
    assert "*Total: R$ 56,00*" in msg
    assert "Entrega: Rua das Flores, 12 - Boa Vista" in msg
    assert "Pagamento: Dinheiro (troco para R$ 100,00, levar R$ 44,00)" in msg
    assert msg.endswith("Observações: Sem cebola")


def test_order_message_pickup_pix():
    msg = menu.build_order_message(
        restaurant_name="X",
        lines=[menu.CartLine("p2", "Suco", 1, 850)],
        customer_name="Bia",
        fulfillment="pickup",
        payment_method="pix",
    )
    assert "Retirada no local" in msg
    assert "Pagamento: Pix" in msg
    assert "Observações" not in msg


def test_whatsapp_link_encodes_message():
    url = menu.whatsapp_link("5581999991234", "Olá\n*Total: R$ 5,00*")
    assert url.startswith("https://wa.me/5581999991234?text=")
    assert "\n" not in url and " " not in url
    assert unquote(url.split("text=", 1)[1]) == "Olá\n*Total: R$ 5,00*"
