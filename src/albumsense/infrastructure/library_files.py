"""Writes files into album folders of the media library."""

import asyncio
import logging
import os
import tempfile
from pathlib import Path

from albumsense.domain.exceptions import LocalMetadataWriteError
from albumsense.domain.ports import ILibraryFileWriter
from albumsense.domain.value_objects import CancellationToken, raise_if_cancelled

logger = logging.getLogger(__name__)


def _write_temp_file(target: Path, data: bytes) -> Path:
    """Write data to a temp file next to target and return its path."""
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_name = tempfile.mkstemp(
        prefix=f".{target.name}.", suffix=".tmp", dir=target.parent
    )
    temp_path = Path(temp_name)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
    except BaseException:
        temp_path.unlink(missing_ok=True)
        raise
    return temp_path


class LocalLibraryFileWriter(ILibraryFileWriter):
    """Atomic file writer.

    Hey future me - readers of the library (other media servers, our own next pass) must
    NEVER see a half-written metadata file. We write to a hidden temp file in the same
    directory and os.replace() it over the target; replace is atomic on one filesystem.
    Cancellation is checked before writing and again before the rename, so a cancelled
    attempt only ever leaves the old file (or nothing).
    """

    async def write(
        self,
        path: str,
        data: bytes,
        cancellation: CancellationToken | None = None,
    ) -> None:
        raise_if_cancelled(cancellation)
        target = Path(path)

        try:
            temp_path = await asyncio.to_thread(_write_temp_file, target, data)
        except OSError as e:
            raise LocalMetadataWriteError(str(target), str(e)) from e

        try:
            raise_if_cancelled(cancellation)
            await asyncio.to_thread(os.replace, temp_path, target)
        except OSError as e:
            raise LocalMetadataWriteError(str(target), str(e)) from e
        finally:
            # No-op after a successful replace
            temp_path.unlink(missing_ok=True)

        logger.debug("Wrote %d bytes to %s", len(data), target)
