from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from apps.accounts.decorators import tenant_required
from apps.common.http import json_body, validated

from . import services
from .forms import AddonForm, CategoryForm, ProductForm


def _form_for(collection: str, cnpj: str, data: dict, partial: bool):
    if collection == "categories":
        return CategoryForm(data, partial=partial)
    if collection == "addons":
        return AddonForm(data, partial=partial)
    return ProductForm(
        data,
        partial=partial,
        categories=services.list_records("categories", cnpj),
        addons=services.list_records("addons", cnpj),
        images=services.list_records("images", cnpj),
    )


def _collection_view(request, collection: str):
    if request.method == "GET":
        records = services.list_records(collection, request.cnpj)
        return JsonResponse({collection: services.serialize_all(collection, records)})
    form = _form_for(collection, request.cnpj, json_body(request), partial=False)
    validated(form)
    record_id, record = services.create_record(collection, request.cnpj, form.to_record())
    return JsonResponse(services.serialize(collection, record_id, record), status=201)


def _detail_view(request, collection: str, record_id: str):
    if request.method == "GET":
        record = services.get_record(collection, request.cnpj, record_id)
        return JsonResponse(services.serialize(collection, record_id, record))
    form = _form_for(collection, request.cnpj, json_body(request), partial=True)
    validated(form)
    record = services.update_record(collection, request.cnpj, record_id, form.to_record())
    return JsonResponse(services.serialize(collection, record_id, record))


def _delete_view(request, collection: str, record_id: str):
    services.delete_record(collection, request.cnpj, record_id)
    return JsonResponse({"deleted": record_id})


@csrf_exempt
@require_http_methods(["GET", "POST"])
@tenant_required
def categories(request):
    return _collection_view(request, "categories")


@csrf_exempt
@require_http_methods(["GET", "POST"])
@tenant_required
def category_detail(request, record_id: str):
    return _detail_view(request, "categories", record_id)


@csrf_exempt
@require_POST
@tenant_required
def delete_category(request, record_id: str):
    return _delete_view(request, "categories", record_id)


@csrf_exempt
@require_http_methods(["GET", "POST"])
@tenant_required
def addons(request):
    return _collection_view(request, "addons")


@csrf_exempt
@require_http_methods(["GET", "POST"])
@tenant_required
def addon_detail(request, record_id: str):
    return _detail_view(request, "addons", record_id)


@csrf_exempt
@require_POST
@tenant_required
def delete_addon(request, record_id: str):
    return _delete_view(request, "addons", record_id)


@csrf_exempt
@require_http_methods(["GET", "POST"])
@tenant_required
def products(request):
    return _collection_view(request, "products")


@csrf_exempt
@require_http_methods(["GET", "POST"])
@tenant_required
def product_detail(request, record_id: str):
    return _detail_view(request, "products", record_id)


@csrf_exempt
@require_POST
@tenant_required
def delete_product(request, record_id: str):
    return _delete_view(request, "products", record_id)


@require_GET
@tenant_required
def images(request):
    records = services.list_records("images", request.cnpj)
    return JsonResponse({"images": services.serialize_all("images", records)})
