import json

from django import forms
from django.http import HttpRequest

from .errors import InvalidInput


def json_body(request: HttpRequest) -> dict:
    if not request.body:
        return {}
    try:
        data = json.loads(request.body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        raise InvalidInput("Corpo da requisição não é um JSON válido.")
    if not isinstance(data, dict):
        raise InvalidInput("Corpo da requisição deve ser um objeto JSON.")
    return data


def validated(form: forms.Form) -> dict:
    """Return cleaned_data or raise InvalidInput with per-field messages."""
    if not form.is_valid():
        fields = {name: [e["message"] for e in errs] for name, errs in form.errors.get_json_data().items()}
        raise InvalidInput("Verifique os campos informados.", fields=fields)
    return form.cleaned_data


def client_ip(request: HttpRequest) -> str:
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR", "") or "unknown"
