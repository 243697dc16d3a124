import logging
import os
import posixpath
from pathlib import Path
from typing import Tuple

from ..exceptions import FileOperationError
from ..models import Status


class HardLinker:
    """
    Places source files into the output tree as hard links.
    Content is never copied and the source is never modified.
    """

    def place(self,
              source: Path,
              dest_root: Path,
              rel_dir: str,
              filename: str,
              status: Status) -> Tuple[str, Status]:
        """
        Links source to dest_root/rel_dir/filename.

        Returns:
            (link path relative to dest_root, final status)

        An existing entry at the destination is taken as the correct
        placement and reported as ALREADY_LINKED; nothing is compared or
        renamed, so the first file to claim a name keeps it.
        """
        dest_dir = dest_root / rel_dir
        link = posixpath.join(rel_dir, filename)

        try:
            dest_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileOperationError(f"Cannot create {dest_dir}: {e}") from e

        try:
            os.link(source, dest_dir / filename)
        except FileExistsError:
            logging.debug(f"Link exists: {link}")
            return link, Status.ALREADY_LINKED
        except OSError as e:
            raise FileOperationError(f"Cannot link {source} -> {dest_dir / filename}: {e}") from e

        return link, status
