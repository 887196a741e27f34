from pathlib import Path
from uuid import uuid4

from PIL import Image, UnidentifiedImageError
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from app.errors import InvalidArgument

IMAGE_FORMATS = {"PNG": "png", "JPEG": "jpg", "WEBP": "webp"}
MIN_DOCUMENT_SIDE = 4


class FileService:
    @staticmethod
    def _sniff(storage):
        """Return the file extension for the image's real format, read from its bytes."""
        try:
            with Image.open(storage.stream) as img:
                image_format = img.format
                width, height = img.size
                img.verify()
        except (UnidentifiedImageError, OSError, SyntaxError) as exc:
            raise InvalidArgument("Invalid image file.") from exc
        finally:
            storage.stream.seek(0)

        if image_format not in IMAGE_FORMATS:
            raise InvalidArgument("Unsupported image format.")
        if min(width, height) < MIN_DOCUMENT_SIDE:
            raise InvalidArgument("Image is too small to be legible.")
        return IMAGE_FORMATS[image_format]

    @classmethod
    def save_image(cls, storage: FileStorage, upload_root: str, folder: str = "documents"):
        """Store an uploaded image under ``<upload_root>/<folder>/`` and return its relative path."""
        if not storage or not storage.filename or not secure_filename(storage.filename):
            raise InvalidArgument("An image file is required.")

        extension = cls._sniff(storage)
        target = Path(upload_root) / folder
        target.mkdir(parents=True, exist_ok=True)
        name = f"{uuid4().hex}.{extension}"
        storage.save(target / name)
        return f"{Path(upload_root).name}/{folder}/{name}"
