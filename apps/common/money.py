from decimal import Decimal, ROUND_HALF_UP


def to_cents(value) -> int:
    """Convert a decimal amount (Decimal, str or int) to integer cents."""
    amount = value if isinstance(value, Decimal) else Decimal(str(value))
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def brl(cents) -> str:
    """Format integer cents as BRL currency (e.g., 123456 -> R$ 1.234,56)."""
    cents = int(cents or 0)
    sign = "-" if cents < 0 else ""
    reais, centavos = divmod(abs(cents), 100)
    # Thousands separator first, then swap to pt-BR punctuation
    s = f"{reais:,}".replace(",", ".")
    return f"{sign}R$ {s},{centavos:02d}"


def decimal_str(cents) -> str:
    reais, centavos = divmod(int(cents or 0), 100)
    return f"{reais}.{centavos:02d}"
