"""Image upload handling: validation and data URL encoding."""

import base64
import mimetypes
from pathlib import Path

from .errors import ValidationFailedError

MAX_IMAGE_BYTES = 5 * 1024 * 1024
PROFILE_IMAGE_TYPES = {"image/jpeg", "image/png", "image/jpg"}


def guess_content_type(name: str) -> str | None:
    content_type, _ = mimetypes.guess_type(name)
    return content_type


def to_data_url(data: bytes, content_type: str) -> str:
    """Encode raw bytes as a base64 ``data:`` URL."""
    return f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"


def encode_image(
    data: bytes,
    content_type: str | None,
    allowed_types: set[str] | None = None,
) -> str:
    """
    Validate an uploaded image and return it as a data URL.

    Args:
        data: Raw file contents.
        content_type: MIME type of the upload.
        allowed_types: Accepted MIME types; any ``image/*`` type when None.

    Raises:
        ValidationFailedError: If the file is too large or not an accepted image.
    """
    if len(data) >= MAX_IMAGE_BYTES:
        raise ValidationFailedError("Image must be smaller than 5MB!")
    if not content_type or not content_type.startswith("image/"):
        raise ValidationFailedError("Only image files are allowed!")
    if allowed_types is not None and content_type not in allowed_types:
        raise ValidationFailedError("Only JPG/PNG files allowed!")
    return to_data_url(data, content_type)


def load_image(path: str | Path, profile: bool = False) -> str:
    """
    Read an image file from disk and encode it as a data URL.

    Profile images must be JPEG or PNG; product images may be any image type.
    """
    path = Path(path).expanduser()
    if not path.is_file():
        raise ValidationFailedError(f"Image file not found: {path}")
    return encode_image(
        path.read_bytes(),
        guess_content_type(path.name),
        allowed_types=PROFILE_IMAGE_TYPES if profile else None,
    )
