from __future__ import annotations

from typing import Any

from django import forms
from django.core.exceptions import ValidationError
from django.core.validators import RegexValidator

from apps.common.cnpj import normalize_cnpj
from apps.common.phone import to_e164

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

hhmm = RegexValidator(r"^([01]\d|2[0-3]):[0-5]\d$", "Use o formato HH:MM.")


class AddressForm(forms.Form):
    street = forms.CharField(max_length=160, min_length=2)
    number = forms.CharField(max_length=20)
    complement = forms.CharField(max_length=120, required=False)
    neighborhood = forms.CharField(max_length=120, min_length=2)
    city = forms.CharField(max_length=120, min_length=2)
    state = forms.CharField(max_length=2, min_length=2)
    zip_code = forms.RegexField(regex=r"^\d{5}-?\d{3}$", error_messages={"invalid": "CEP inválido."})


class SignupForm(forms.Form):
    email = forms.EmailField()
    password = forms.CharField(min_length=6, max_length=128)
    restaurant_name = forms.CharField(min_length=2, max_length=160)
    owner_name = forms.CharField(min_length=2, max_length=160)
    cnpj = forms.CharField(max_length=18)

    def clean_email(self) -> str:
        return self.cleaned_data["email"].strip().lower()

    def clean_cnpj(self) -> str:
        raw = self.cleaned_data["cnpj"]
        try:
            self.cleaned_data["cnpj_digits"] = normalize_cnpj(raw)
        except ValueError as e:
            raise ValidationError(str(e))
        return raw.strip()


class DayHoursForm(forms.Form):
    is_open = forms.BooleanField(required=False)
    open_time = forms.CharField(required=False, validators=[hhmm])
    close_time = forms.CharField(required=False, validators=[hhmm])

    def clean(self) -> dict[str, Any]:
        data = super().clean()
        if data.get("is_open") and not (data.get("open_time") and data.get("close_time")):
            raise ValidationError("Informe abertura e fechamento para dias abertos.")
        return data


def _phone_or_blank(value: str) -> str:
    value = (value or "").strip()
    if not value:
        return ""
    try:
        return to_e164(value)
    except ValueError as e:
        raise ValidationError(str(e))


class SettingsForm(forms.Form):
    """Partial update of the restaurant profile.

    Only keys present in the submitted data end up in ``cleaned_data``, so a
    form posting just the hours leaves the other settings alone.
    """

    restaurant_name = forms.CharField(min_length=2, max_length=160, required=False)
    owner_name = forms.CharField(min_length=2, max_length=160, required=False)
    phone = forms.CharField(max_length=40, required=False)
    whatsapp = forms.CharField(max_length=40, required=False)
    delivery = forms.BooleanField(required=False)
    receive_orders_by_whatsapp = forms.BooleanField(required=False)
    whatsapp_order_number = forms.CharField(max_length=40, required=False)

    def __init__(self, data: dict, *args: Any, **kwargs: Any) -> None:
        self.raw = data or {}
        scalar = {k: v for k, v in self.raw.items() if k in self.base_fields}
        super().__init__(scalar, *args, **kwargs)

    def clean_phone(self) -> str:
        return _phone_or_blank(self.cleaned_data.get("phone"))

    def clean_whatsapp(self) -> str:
        return _phone_or_blank(self.cleaned_data.get("whatsapp"))

    def clean_whatsapp_order_number(self) -> str:
        return _phone_or_blank(self.cleaned_data.get("whatsapp_order_number"))

    def clean(self) -> dict[str, Any]:
        data = super().clean()
        out = {k: v for k, v in data.items() if k in self.raw}
        if self.raw.get("restaurant_name") == "" or self.raw.get("owner_name") == "":
            raise ValidationError("Nome não pode ficar em branco.")

        if "address" in self.raw:
            address = AddressForm(self.raw.get("address") or {})
            if not address.is_valid():
                for field, errs in address.errors.items():
                    self.add_error(None, f"address.{field}: {' '.join(errs)}")
            else:
                out["address"] = address.cleaned_data

        if "hours" in self.raw:
            hours_in = self.raw.get("hours") or {}
            if not isinstance(hours_in, dict):
                raise ValidationError("hours deve ser um objeto por dia da semana.")
            unknown = set(hours_in) - set(WEEKDAYS)
            if unknown:
                raise ValidationError(f"Dias inválidos: {', '.join(sorted(unknown))}")
            hours = {}
            for day in WEEKDAYS:
                day_form = DayHoursForm(hours_in.get(day) or {})
                if not day_form.is_valid():
                    for errs in day_form.errors.values():
                        self.add_error(None, f"hours.{day}: {' '.join(errs)}")
                    continue
                hours[day] = day_form.cleaned_data
            out["hours"] = hours

        if out.get("receive_orders_by_whatsapp") and not (
            out.get("whatsapp_order_number") or self.initial.get("whatsapp_order_number")
        ):
            raise ValidationError("Informe o número de WhatsApp que receberá os pedidos.")
        return out
