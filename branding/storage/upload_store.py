from pathlib import Path
import random
import time

from PIL import Image, UnidentifiedImageError
from werkzeug.datastructures import FileStorage

from ..models import UploadResult


class UploadRejected(ValueError):
    """The uploaded file cannot be stored."""


class UploadStore:
    """Append-only artwork directory; every upload gets a fresh, unique name."""

    def __init__(self, uploads_dir: Path, allowed_exts: set[str], raster_exts: set[str] | None = None,
                 url_prefix: str = "/uploads"):
        self.uploads_dir = Path(uploads_dir)
        self.uploads_dir.mkdir(parents=True, exist_ok=True)
        self.allowed_exts = {e.lower() for e in allowed_exts}
        self.raster_exts = {e.lower() for e in (raster_exts or set())}
        self.url_prefix = url_prefix.rstrip("/")

    @staticmethod
    def unique_name(original: str) -> str:
        # only the extension of the client name is kept; it is checked against the allow-list
        ext = Path(original or "").suffix.lower()
        return f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}{ext}"

    def _check_raster(self, path: Path):
        try:
            with Image.open(path) as img:
                img.verify()
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            path.unlink(missing_ok=True)
            raise UploadRejected(f"File is not a readable image: {e}") from e

    def save(self, f: FileStorage | None) -> UploadResult:
        if f is None or not f.filename:
            raise UploadRejected("No file uploaded")

        name = self.unique_name(f.filename)
        ext = Path(name).suffix
        if ext not in self.allowed_exts:
            raise UploadRejected(f"file must be one of {sorted(self.allowed_exts)}")

        out = self.uploads_dir / name
        f.save(out)
        if ext in self.raster_exts:
            self._check_raster(out)
        return UploadResult(url=f"{self.url_prefix}/{name}")
