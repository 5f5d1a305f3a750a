from django.conf import settings
from PIL import Image, UnidentifiedImageError

from .errors import InvalidInput

# Leading bytes of the formats we accept
_MAGIC = {
    "image/jpeg": (b"\xff\xd8\xff",),
    "image/png": (b"\x89PNG\r\n\x1a\n",),
    "image/webp": (b"RIFF",),
}


def validate_max_size(file, max_bytes: int):
    size = getattr(file, "size", 0) or 0
    if size > max_bytes:
        raise InvalidInput(f"Arquivo excede {max_bytes // (1024 * 1024)}MB.")


def validate_mime_and_magic(file, allowed: set[str]):
    mime = getattr(file, "content_type", "") or ""
    if mime not in allowed:
        raise InvalidInput("Tipo de arquivo não permitido.")
    pos = file.tell()
    head = file.read(16)
    file.seek(pos)
    if not any(head.startswith(sig) for sig in _MAGIC.get(mime, ())):
        raise InvalidInput("Conteúdo de imagem inválido.")


def verify_image(file):
    pos = file.tell()
    try:
        img = Image.open(file)
        img.verify()
    except (UnidentifiedImageError, OSError):
        raise InvalidInput("Imagem corrompida ou inválida.")
    finally:
        file.seek(pos)


def validate_upload(file):
    validate_max_size(file, settings.MAX_UPLOAD_BYTES)
    validate_mime_and_magic(file, settings.ALLOWED_IMAGE_MIME_TYPES)
    verify_image(file)
