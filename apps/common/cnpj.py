import re

_NON_DIGITS = re.compile(r"\D")


def normalize_cnpj(raw: str) -> str:
    """Strip punctuation from a CNPJ: ``12.345.678/0001-99`` -> ``12345678000199``."""
    digits = _NON_DIGITS.sub("", raw or "")
    if len(digits) != 14:
        raise ValueError("CNPJ deve conter 14 dígitos.")
    return digits
