"""Avatar storage — bounded, streamed copy of an upload to disk.

Learn: The upload is copied chunk by chunk (upload_chunk_size bytes at a
time) and the byte count is checked on every chunk. A file that crosses
upload_max_file_size stops the copy right there; the partial file is
removed and UploadTooLargeError is raised. The whole payload is never
held in memory.

Each file lands in its own random directory (<uuid>/<filename>), so two
users uploading "me.png" never collide and the original filename is kept
for the URL.
"""

import uuid
from pathlib import Path, PurePath
from typing import Optional, Protocol

import anyio
import structlog

from authgate.errors import UploadTooLargeError, ValidationError

logger = structlog.get_logger()


class Upload(Protocol):
    """The bit of starlette's UploadFile we rely on."""

    filename: Optional[str]

    async def read(self, size: int = -1) -> bytes: ...


class AvatarStorage:
    """Writes uploads under `root` and derives their public URL."""

    def __init__(
        self,
        root: Path,
        public_url: str,
        max_file_size: int,
        chunk_size: int = 64 * 1024,
    ):
        self.root = Path(root)
        self.public_url = public_url.rstrip("/")
        self.max_file_size = max_file_size
        self.chunk_size = chunk_size

    async def store(self, upload: Upload) -> str:
        """Stream `upload` to disk and return its URL."""
        filename = safe_filename(upload.filename)
        if not filename:
            raise ValidationError({"file": "Uploaded file must have a filename"})

        relative = f"{uuid.uuid4().hex}/{filename}"
        destination = self.root / relative
        destination.parent.mkdir(parents=True, exist_ok=True)

        written = 0
        try:
            async with await anyio.open_file(destination, "wb") as out:
                while True:
                    chunk = await upload.read(self.chunk_size)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > self.max_file_size:
                        raise UploadTooLargeError(
                            f"Uploaded file exceeds {self.max_file_size} bytes"
                        )
                    await out.write(chunk)
        except UploadTooLargeError:
            _remove(destination)
            logger.info("avatar.rejected_too_large", limit=self.max_file_size)
            raise

        logger.info("avatar.stored", path=relative, size=written)
        return f"{self.public_url}/{relative}"

    def discard(self, url: str) -> None:
        """Remove a file previously returned by store(). Unknown URLs are ignored."""
        prefix = f"{self.public_url}/"
        if not url.startswith(prefix):
            return
        relative = url[len(prefix):]
        destination = (self.root / relative).resolve()
        if self.root.resolve() not in destination.parents:
            return
        _remove(destination)
        logger.info("avatar.discarded", path=relative)


def safe_filename(filename: Optional[str]) -> str:
    """Strip any directory part so a filename can't escape the upload root."""
    if not filename:
        return ""
    name = PurePath(filename.replace("\\", "/")).name.strip()
    if name in {"", ".", ".."}:
        return ""
    return name


def _remove(path: Path) -> None:
    path.unlink(missing_ok=True)
    try:
        path.parent.rmdir()
    except OSError:
        pass
