"""
Public image storage.

Uploaded images are written below ``settings.public_storage_path`` and
referenced in the database by their path relative to that directory
(e.g. ``products/3f2a...c1.png``). The directory is served at ``/storage``.
"""

import logging
import uuid
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from fastapi import UploadFile
from PIL import Image

from backend.app.core.config import settings
from backend.app.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".avif"}

# Decoded format each extension must carry
EXTENSION_FORMATS = {
    ".jpg": "JPEG",
    ".jpeg": "JPEG",
    ".png": "PNG",
    ".webp": "WEBP",
    ".avif": "AVIF",
}


@dataclass
class PreparedImage:
    filename: str
    extension: str
    content: bytes
    width: int = 0
    height: int = 0


def inspect_image(content: bytes) -> Tuple[str, int, int]:
    """
    Decode the image header and check the file's integrity.

    Returns:
        (format, width, height) as reported by Pillow

    Raises:
        ValueError: the bytes are not a readable image
    """
    try:
        with Image.open(BytesIO(content)) as img:
            image_format, (width, height) = img.format, img.size
            img.verify()
    except (OSError, SyntaxError, Image.DecompressionBombError) as e:
        raise ValueError(str(e)) from e
    return image_format, width, height


def present_files(files: Optional[Iterable[UploadFile]]) -> List[UploadFile]:
    """Drop empty multipart parts (browsers send one when no file is picked)."""
    return [file for file in (files or []) if file is not None and file.filename]


class ImageStorage:
    def __init__(self, root):
        self.root = Path(root)

    async def prepare(self, file: UploadFile, field: str, max_kb: int) -> PreparedImage:
        """Read and validate one upload without touching the disk."""
        extension = Path(file.filename or "").suffix.lower()
        if extension not in ALLOWED_EXTENSIONS:
            allowed = ", ".join(sorted(ext.lstrip(".") for ext in ALLOWED_EXTENSIONS))
            raise ValidationError.for_field(field, f"The {field} must be a file of type: {allowed}.")

        content = await file.read()
        if len(content) > max_kb * 1024:
            raise ValidationError.for_field(field, f"The {field} may not be greater than {max_kb} kilobytes.")

        try:
            image_format, width, height = inspect_image(content)
        except ValueError:
            raise ValidationError.for_field(field, f"The {field} must be an image.")
        if image_format != EXTENSION_FORMATS[extension]:
            raise ValidationError.for_field(field, f"The {field} must be an image.")

        return PreparedImage(
            filename=file.filename, extension=extension, content=content, width=width, height=height
        )

    async def prepare_many(
        self,
        files: Optional[Iterable[UploadFile]],
        field: str = "images",
        max_kb: Optional[int] = None,
        max_count: Optional[int] = None,
    ) -> List[PreparedImage]:
        files = present_files(files)
        max_count = max_count or settings.max_images_per_item
        if len(files) > max_count:
            raise ValidationError.for_field(field, f"The {field} may not have more than {max_count} items.")
        return [await self.prepare(file, field, max_kb or settings.max_image_size_kb) for file in files]

    def save(self, image: PreparedImage, folder: str) -> str:
        directory = self.root / folder
        directory.mkdir(parents=True, exist_ok=True)
        relative_path = f"{folder}/{uuid.uuid4().hex}{image.extension}"
        with open(self.root / relative_path, "wb") as f:
            f.write(image.content)
        return relative_path

    def save_many(self, images: Iterable[PreparedImage], folder: str) -> List[str]:
        return [self.save(image, folder) for image in images]

    def exists(self, path: str) -> bool:
        return (self.root / path).is_file()

    def delete(self, path: Optional[str]) -> bool:
        """Best-effort removal; failures are logged, never raised."""
        if not path:
            return False
        target = (self.root / path).resolve()
        if self.root.resolve() not in target.parents:
            logger.warning(f"Refusing to delete file outside storage root: {path}")
            return False
        try:
            target.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning(f"Failed to delete stored file {path}: {e}")
            return False

    def delete_many(self, paths: Optional[Iterable[str]]) -> int:
        return sum(1 for path in (paths or []) if self.delete(path))


image_storage = ImageStorage(settings.public_storage_path)


def get_image_storage() -> ImageStorage:
    """FastAPI dependency returning the public image storage."""
    return image_storage
