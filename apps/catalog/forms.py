from __future__ import annotations

from decimal import Decimal
from typing import Any

from django import forms

from apps.common.money import to_cents

PRICE_KW = dict(max_digits=10, decimal_places=2, min_value=Decimal("0.01"))


class CatalogForm(forms.Form):
    """Base for catalog writes.

    With ``partial=True`` (edits) only submitted fields are validated and
    returned, so the caller can merge them into the stored record.
    """

    def __init__(self, data: dict, *args: Any, partial: bool = False, **kwargs: Any) -> None:
        super().__init__(data, *args, **kwargs)
        self.partial = partial
        if partial:
            for name, f in self.fields.items():
                if name not in data:
                    f.required = False

    def to_record(self) -> dict[str, Any]:
        out = {}
        for name, value in self.cleaned_data.items():
            if self.partial and name not in self.data:
                continue
            out.update(self.record_field(name, value))
        return out

    def record_field(self, name: str, value: Any) -> dict[str, Any]:
        if name == "price":
            return {"price_cents": to_cents(value)}
        return {name: value}


class CategoryForm(CatalogForm):
    name = forms.CharField(min_length=2, max_length=80)


class AddonForm(CatalogForm):
    name = forms.CharField(min_length=2, max_length=80)
    price = forms.DecimalField(**PRICE_KW)
    description = forms.CharField(max_length=280, required=False)


class ProductForm(CatalogForm):
    name = forms.CharField(min_length=2, max_length=120)
    price = forms.DecimalField(**PRICE_KW)
    description = forms.CharField(min_length=5, max_length=1000)
    category_id = forms.ChoiceField(error_messages={"invalid_choice": "Categoria inexistente."})
    addon_ids = forms.MultipleChoiceField(required=False, error_messages={"invalid_choice": "Adicional %(value)s inexistente."})
    image_id = forms.ChoiceField(required=False, error_messages={"invalid_choice": "Imagem inexistente."})
    is_visible = forms.BooleanField(required=False)

    def __init__(self, data: dict, *args: Any, categories: dict, addons: dict, images: dict, **kwargs: Any) -> None:
        super().__init__(data, *args, **kwargs)
        # References are checked against the tenant's own records
        self.fields["category_id"].choices = [(k, k) for k in categories]
        self.fields["addon_ids"].choices = [(k, k) for k in addons]
        self.fields["image_id"].choices = [("", "")] + [(k, k) for k in images]
        if not self.partial and "is_visible" not in self.data:
            self.data = dict(self.data, is_visible=True)

    def clean_addon_ids(self) -> list[str]:
        return list(dict.fromkeys(self.cleaned_data.get("addon_ids") or []))

    def record_field(self, name: str, value: Any) -> dict[str, Any]:
        if name == "addon_ids":
            return {"addon_ids": {i: True for i in value}}
        if name == "image_id":
            return {"image_id": value or None}
        return super().record_field(name, value)
