from __future__ import annotations

import logging
from typing import Optional

from django.utils import timezone

from apps.common.errors import Conflict, NotFound
from apps.common.realtime import get_store

log = logging.getLogger(__name__)

# collection name -> top-level store node
NODES = {
    "categories": "categories",
    "addons": "add-ons",
    "products": "products",
    "images": "images",
}

NOT_FOUND = {
    "categories": "Categoria não encontrada",
    "addons": "Adicional não encontrado",
    "products": "Produto não encontrado",
    "images": "Imagem não encontrada",
}


def _path(collection: str, cnpj: str, record_id: Optional[str] = None) -> str:
    base = f"{NODES[collection]}/{cnpj}"
    return f"{base}/{record_id}" if record_id else base


def list_records(collection: str, cnpj: str) -> dict:
    return get_store().get(_path(collection, cnpj)) or {}


def get_record(collection: str, cnpj: str, record_id: str) -> dict:
    record = get_store().get(_path(collection, cnpj, record_id))
    if not record:
        raise NotFound(NOT_FOUND[collection])
    return record


def create_record(collection: str, cnpj: str, values: dict) -> tuple[str, dict]:
    record = dict(values, created_at=timezone.now().isoformat())
    record_id = get_store().push(_path(collection, cnpj), record)
    log.info("[catalog] Created %s id=%s cnpj=%s", collection, record_id, cnpj)
    return record_id, record


def update_record(collection: str, cnpj: str, record_id: str, values: dict) -> dict:
    get_record(collection, cnpj, record_id)
    if values:
        get_store().update(_path(collection, cnpj, record_id), values)
        log.info("[catalog] Updated %s id=%s cnpj=%s fields=%s", collection, record_id, cnpj, sorted(values))
    return get_record(collection, cnpj, record_id)


def _products_using(cnpj: str, *, category_id: str | None = None, addon_id: str | None = None) -> list[str]:
    out = []
    for pid, product in list_records("products", cnpj).items():
        if category_id and product.get("category_id") == category_id:
            out.append(pid)
        elif addon_id and addon_id in (product.get("addon_ids") or {}):
            out.append(pid)
    return out


def delete_record(collection: str, cnpj: str, record_id: str) -> None:
    get_record(collection, cnpj, record_id)
    if collection == "categories" and _products_using(cnpj, category_id=record_id):
        raise Conflict("Categoria possui produtos. Remova ou mova os produtos antes.")
    if collection == "addons" and _products_using(cnpj, addon_id=record_id):
        raise Conflict("Adicional em uso por produtos. Remova-o dos produtos antes.")
    get_store().delete(_path(collection, cnpj, record_id))
    log.info("[catalog] Deleted %s id=%s cnpj=%s", collection, record_id, cnpj)


def serialize(collection: str, record_id: str, record: dict) -> dict:
    data = dict(record, id=record_id)
    if collection == "products":
        data["addon_ids"] = sorted((record.get("addon_ids") or {}).keys())
    return data


def serialize_all(collection: str, records: dict) -> list[dict]:
    return [serialize(collection, rid, rec) for rid, rec in records.items()]
