import os
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Pattern, TextIO

from .. import config
from ..exceptions import FileOperationError, WalkError
from ..metadata.extract import ImageExtractor, VideoExtractor
from ..models import FileRecord, Failure, Outcome, Skip, Status
from ..organization.linker import HardLinker
from ..organization.rules import derive_filename, derive_path


@dataclass
class MediaKind:
    """A file name pattern, the status it classifies as, and its extractor."""
    pattern: Pattern
    status: Status
    extract: Callable[[Path], Outcome]


def default_media_kinds(ffprobe: str = config.FFPROBE_BIN,
                        date_layout: str = config.DEFAULT_VIDEO_DATE_LAYOUT) -> List[MediaKind]:
    return [
        MediaKind(config.IMAGE_PATTERN, Status.IMAGE, ImageExtractor().extract),
        MediaKind(config.VIDEO_PATTERN, Status.VIDEO, VideoExtractor(ffprobe, date_layout).extract),
    ]


class MediaWalker:
    def __init__(self,
                 kinds: Optional[List[MediaKind]] = None,
                 linker: Optional[HardLinker] = None,
                 rename: bool = True,
                 stream: Optional[TextIO] = None):
        """
        Args:
            kinds: Ordered classification list; the first matching pattern wins.
            rename: Name links after their timestamp instead of keeping the original name.
            stream: Where progress markers go (default: stderr).
        """
        self.kinds = kinds if kinds is not None else default_media_kinds()
        self.linker = linker or HardLinker()
        self.rename = rename
        self.stream = stream

    def walk(self, src_root: Path, dest_root: Path) -> List[FileRecord]:
        """
        Visits every file under src_root and places the dateable media
        under dest_root. Returns one record per file, in traversal order.

        Per-file problems are recorded on the file's record. Only an
        unreadable src_root raises (WalkError).
        """
        src_root = Path(src_root)
        dest_root = Path(dest_root)
        records: List[FileRecord] = []

        try:
            for path in self._iter_files(src_root):
                record = self._process_single_file(path, dest_root)
                records.append(record)
                self._emit(record.status.marker)
        finally:
            self._emit("\n")

        return records

    def _process_single_file(self, path: Path, dest_root: Path) -> FileRecord:
        try:
            size = path.lstat().st_size
        except OSError as e:
            logging.warning(f"Cannot stat {path}: {e}")
            return FileRecord(origin=str(path), size=0, name=path.name,
                              extension=self._extension(path), status=Status.ERROR)

        record = FileRecord(
            origin=str(path),
            size=size,
            name=path.name,
            extension=self._extension(path),
        )

        # 1. Classify
        kind = self._classify(path.name)
        if kind is None:
            return record
        record.status = kind.status

        # 2. Extract
        try:
            outcome = kind.extract(path)
        except Exception as e:
            logging.exception(f"Failed to read metadata from {path}: {e}")
            record.status = Status.ERROR
            return record

        if isinstance(outcome, Failure):
            record.status = Status.ERROR
            return record

        meta = outcome.meta
        record.width = meta.width
        record.height = meta.height

        if isinstance(outcome, Skip) or meta.time is None:
            logging.debug(f"Skipping {path}: {getattr(outcome, 'reason', 'no timestamp')}")
            record.status = Status.SKIPPED
            return record

        # 3. Derive destination
        rel_dir = derive_path(meta.time)
        if self.rename:
            record.name = derive_filename(meta.time, record.extension)

        # 4. Place
        try:
            record.link, record.status = self.linker.place(
                path, dest_root, rel_dir, record.name, kind.status
            )
        except FileOperationError as e:
            logging.warning(str(e))
            record.status = Status.ERROR

        return record

    def _classify(self, name: str) -> Optional[MediaKind]:
        for kind in self.kinds:
            if kind.pattern.search(name):
                return kind
        return None

    def _extension(self, path: Path) -> str:
        return path.suffix[1:].lower()

    def _iter_files(self, root: Path) -> Iterator[Path]:
        """
        Depth-first walk in lexical order; subdirectories are entered at
        their place in the listing. A file given as root is yielded alone.
        """
        try:
            entries = self._list_dir(root)
        except NotADirectoryError:
            yield root
            return
        except OSError as e:
            raise WalkError(f"Cannot read source {root}: {e}") from e

        yield from self._iter_entries(entries)

    def _iter_entries(self, entries: List[os.DirEntry]) -> Iterator[Path]:
        for e in entries:
            if e.is_dir(follow_symlinks=False):
                try:
                    children = self._list_dir(Path(e.path))
                except OSError as err:
                    logging.warning(f"Cannot read {e.path}: {err}")
                    continue
                yield from self._iter_entries(children)
            else:
                yield Path(e.path)

    def _list_dir(self, directory: Path) -> List[os.DirEntry]:
        with os.scandir(directory) as it:
            entries = list(it)
        entries.sort(key=lambda e: e.name)
        return entries

    def _emit(self, text: str):
        stream = self.stream or sys.stderr
        stream.write(text)
        stream.flush()
