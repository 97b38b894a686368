from django.conf import settings
from django.core.exceptions import ValidationError
from PIL import Image, UnidentifiedImageError


def validate_upload(file):
    """Menu image check: size cap, allowed type, and that Pillow can decode it."""
    limit = settings.MAX_UPLOAD_BYTES
    if (getattr(file, "size", 0) or 0) > limit:
        raise ValidationError(f"La imagen supera {limit // (1024 * 1024)} MB.")
    allowed = settings.ALLOWED_IMAGE_MIME_TYPES
    declared = getattr(file, "content_type", None)
    if declared and declared not in allowed:
        raise ValidationError("Formato de imagen no permitido.")

    pos = file.tell()
    try:
        with Image.open(file) as img:
            detected = Image.MIME.get(img.format or "")
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise ValidationError("La imagen está dañada o no es válida.") from e
    finally:
        file.seek(pos)
    if detected not in allowed:
        raise ValidationError("Formato de imagen no permitido.")
