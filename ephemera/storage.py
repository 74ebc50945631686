"""On-disk storage of uploaded files."""

import asyncio
import logging
import os
from typing import Optional


class FileStorage:
    """Stores backing files under a single upload directory."""

    def __init__(self, upload_dir: str, logger: Optional[logging.Logger] = None):
        self.upload_dir = upload_dir
        self.logger = logger or logging.getLogger(__name__)

    def ensure_directory(self) -> None:
        """Create the upload directory.

        Raises:
            OSError: If the directory cannot be created
        """
        os.makedirs(self.upload_dir, mode=0o755, exist_ok=True)
        self.logger.info(f"Upload directory ready: {self.upload_dir}")

    def path_for(self, name: str) -> str:
        # Only the final path component of a name is used.
        return os.path.join(self.upload_dir, os.path.basename(name))

    async def save(self, name: str, data: bytes) -> str:
        """Write ``data`` to a new file named ``name`` in the upload directory.

        Returns:
            Storage path of the written file

        Raises:
            FileExistsError: If a file with this name already exists
        """
        path = self.path_for(name)

        def _write() -> None:
            with open(path, "xb") as f:
                f.write(data)

        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, _write)
        self.logger.debug(f"Saved {len(data)} bytes to {path}")
        return path

    async def delete(self, path: str) -> bool:
        """Remove a stored file.

        Returns:
            True if the file was removed, False if it was already gone

        Raises:
            OSError: For any failure other than a missing file
        """
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, os.remove, path)
        except FileNotFoundError:
            return False
        self.logger.debug(f"Deleted file {path}")
        return True

    def exists(self, path: Optional[str]) -> bool:
        return bool(path) and os.path.isfile(path)
