import logging
import mimetypes
import os

from django.core.files.storage import default_storage
from django.http import FileResponse, Http404, JsonResponse
from django.utils import timezone
from django.utils.text import get_valid_filename
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from apps.accounts.decorators import tenant_required
from apps.catalog.services import create_record
from apps.common.cnpj import normalize_cnpj
from apps.common.errors import Forbidden, InvalidInput
from apps.common.validators import validate_upload

log = logging.getLogger(__name__)

UPLOAD_PREFIX = "uploads/"


def build_upload_name(cnpj: str, original_name: str, now=None) -> str:
    now = now or timezone.now()
    ms = int(now.timestamp() * 1000)
    safe = get_valid_filename(os.path.basename(original_name or "")) or "arquivo"
    return f"{UPLOAD_PREFIX}{cnpj}/{ms}-{safe}"


@csrf_exempt
@require_POST
@tenant_required
def upload(request):
    raw_cnpj = (request.POST.get("cnpj") or "").strip()
    if not raw_cnpj:
        raise InvalidInput("CNPJ não fornecido.", fields={"cnpj": ["Campo obrigatório."]})
    file = request.FILES.get("file")
    if file is None:
        raise InvalidInput("Nenhum arquivo enviado.", fields={"file": ["Campo obrigatório."]})
    try:
        cnpj = normalize_cnpj(raw_cnpj)
    except ValueError as e:
        raise InvalidInput(str(e), fields={"cnpj": [str(e)]})
    if cnpj != request.cnpj:
        raise Forbidden("Upload permitido apenas para o próprio restaurante.")

    validate_upload(file)
    now = timezone.now()
    saved = default_storage.save(build_upload_name(cnpj, file.name, now), file)
    file_path = f"/{saved}"
    meta = {
        "path": file_path,
        "original_name": file.name,
        "mime_type": getattr(file, "content_type", "") or "",
        "size": file.size,
    }
    try:
        image_id, _ = create_record("images", cnpj, meta)
    except Exception:
        # Metadata is what makes the file reachable; do not keep an orphan
        default_storage.delete(saved)
        raise
    log.info("[media] Uploaded %s (%s bytes) image_id=%s cnpj=%s", saved, file.size, image_id, cnpj)
    return JsonResponse({"imageId": image_id, "filePath": file_path}, status=201)


@require_GET
def image_public(request, path: str):
    name = f"{UPLOAD_PREFIX}{path}"
    if ".." in path.split("/") or not default_storage.exists(name):
        raise Http404
    f = default_storage.open(name, "rb")
    ctype, _ = mimetypes.guess_type(name)
    resp = FileResponse(f, content_type=ctype or "application/octet-stream")
    # Names carry a timestamp, so content at a given path never changes
    resp["Cache-Control"] = "public, max-age=31536000, immutable"
    return resp
