import logging
import os
import re
import time
import unicodedata

from .errors import InvalidUpload

logger = logging.getLogger("library_api.storage")

ALLOWED_IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp")
CHUNK_SIZE = 64 * 1024


def sanitize_filename(filename: str) -> str:
    """Turn an uploaded file name into a safe, lower-case name.

    ``"Café Menu (1).PNG"`` becomes ``"cafe-menu-1.png"``.
    """
    stem, ext = os.path.splitext(os.path.basename(filename))
    name = unicodedata.normalize("NFKD", stem)
    name = re.sub(r"[^\w.-]", "-", name, flags=re.ASCII)
    name = re.sub(r"-+", "-", name)
    name = name.strip("-").lower()
    return f"{name}{ext.lower()}"


class CoverStorage:
    """Stores book cover images below ``<upload_dir>/covers``."""

    def __init__(self, upload_dir: str, max_size: int, url_prefix: str = "/uploads"):
        self.upload_dir = upload_dir
        self.max_size = max_size
        self.url_prefix = url_prefix
        self.covers_dir = os.path.join(upload_dir, "covers")

    def save(self, book_id: int, filename: str, stream) -> str:
        if not filename:
            raise InvalidUpload("No file uploaded")

        safe_name = sanitize_filename(filename)
        if os.path.splitext(safe_name)[1] not in ALLOWED_IMAGE_EXTENSIONS:
            raise InvalidUpload("Cover image must be one of: " + ", ".join(ALLOWED_IMAGE_EXTENSIONS))

        os.makedirs(self.covers_dir, exist_ok=True)
        stored_name = f"{book_id}-{int(time.time() * 1000)}-{safe_name}"
        path = os.path.join(self.covers_dir, stored_name)

        written = 0
        with open(path, "wb") as out:
            while True:
                chunk = stream.read(CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > self.max_size:
                    break
                out.write(chunk)

        if written > self.max_size:
            os.remove(path)
            raise InvalidUpload(f"File too large (max {self.max_size} bytes)")

        logger.info("stored cover for book %s at %s", book_id, path)
        return f"{self.url_prefix}/covers/{stored_name}"
