"""Disk storage for uploaded cover images and PDFs.

Stored files are referenced by path strings relative to the static root,
e.g. ``/uploads/covers/<name>.jpg``. The catalog only ever sees those strings.
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from uuid import uuid4

from starlette.datastructures import UploadFile

logger = logging.getLogger(__name__)

URL_PREFIX = "/uploads"


class UploadError(ValueError):
    """Raised when an uploaded file is rejected."""


@dataclass(frozen=True)
class FileKind:
    """Rules for one kind of upload."""

    field: str
    subdir: str
    allowed_types: tuple[str, ...]
    max_size: int
    label: str


COVER = FileKind(
    field="coverImage",
    subdir="covers",
    allowed_types=("image/jpeg", "image/png", "image/webp", "image/gif"),
    max_size=5 * 1024 * 1024,
    label="image",
)

PDF = FileKind(
    field="pdfFile",
    subdir="pdfs",
    allowed_types=("application/pdf",),
    max_size=50 * 1024 * 1024,
    label="PDF",
)

FILE_KINDS = {kind.field: kind for kind in (COVER, PDF)}


class UploadStore:
    """Saves and removes uploaded book files under a root directory."""

    def __init__(self, root: Path):
        self.root = Path(root)
        for kind in FILE_KINDS.values():
            (self.root / kind.subdir).mkdir(parents=True, exist_ok=True)

    @staticmethod
    def _unique_name(filename: Optional[str]) -> str:
        suffix = Path(filename or "").suffix.lower()
        return f"{uuid4()}_{int(time.time() * 1000)}{suffix}"

    async def save(self, upload: UploadFile, kind: FileKind) -> str:
        """Validate and store an upload.

        Args:
            upload: The uploaded file
            kind: COVER or PDF

        Returns:
            Reference path for the stored file

        Raises:
            UploadError: Wrong content type or file too large
        """
        content_type = (upload.content_type or "").lower()
        if content_type not in kind.allowed_types:
            raise UploadError(
                f"Invalid {kind.label} file type: {content_type or 'unknown'}. "
                f"Allowed types: {', '.join(kind.allowed_types)}"
            )

        content = await upload.read()
        if len(content) > kind.max_size:
            raise UploadError(
                f"File size exceeds limit ({kind.max_size // (1024 * 1024)}MB max)"
            )

        name = self._unique_name(upload.filename)
        (self.root / kind.subdir / name).write_bytes(content)
        logger.debug("Stored %s upload as %s", kind.label, name)
        return f"{URL_PREFIX}/{kind.subdir}/{name}"

    def resolve(self, reference: str) -> Optional[Path]:
        """Map a stored reference back to a path inside the root, if it is one."""
        if not reference.startswith(URL_PREFIX + "/"):
            return None
        relative = reference[len(URL_PREFIX) + 1 :]
        path = (self.root / relative).resolve()
        try:
            path.relative_to(self.root.resolve())
        except ValueError:
            return None
        return path

    def release(self, *references: Optional[str]) -> None:
        """Delete stored files for the given references. Unknown ones are skipped."""
        for reference in references:
            if not reference:
                continue
            path = self.resolve(reference)
            if path is not None and path.is_file():
                path.unlink()
                logger.debug("Removed stored file %s", reference)
