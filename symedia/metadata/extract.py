import json
import logging
import subprocess
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import exifread
from PIL import Image

from .. import config
from ..exceptions import MetadataExtractionError, ProbeReportError
from ..models import ExtractedMeta, Failure, Outcome, Skip, Success

ZERO_TIME = datetime.min.replace(tzinfo=timezone.utc)


class ImageExtractor:
    """
    Reads capture time and dimensions from JPEG-class files.

    Strategy:
      - EXIF via 'exifread' (timestamp + PixelX/YDimension).
      - Header-only read via Pillow when dimensions are still unknown.
    """

    def extract(self, path: Path) -> Outcome:
        try:
            f = path.open('rb')
        except OSError as e:
            logging.warning(f"Cannot open {path}: {e}")
            return Failure(str(e))

        meta = ExtractedMeta()
        with f:
            outcome = self._read_exif(f, path, meta)

        # Alt dimensions, attempted whatever the EXIF outcome was
        if not meta.width or not meta.height:
            self._read_header_size(path, meta)

        return outcome

    def _read_exif(self, f, path: Path, meta: ExtractedMeta) -> Outcome:
        try:
            # details=False skips makernotes and thumbnails
            tags = exifread.process_file(f, details=False)
        except Exception as e:
            logging.debug(f"ExifRead failed for {path}: {e}")
            return Skip("undecodable EXIF", meta)

        if not tags:
            return Skip("no EXIF", meta)

        if config.WIDTH_TAG in tags and config.HEIGHT_TAG in tags:
            try:
                meta.width = int(str(tags[config.WIDTH_TAG]))
                meta.height = int(str(tags[config.HEIGHT_TAG]))
            except ValueError:
                meta.width = meta.height = 0

        meta.time = self._parse_exif_date(tags)
        if meta.time is None:
            return Skip("no EXIF timestamp", meta)

        return Success(meta)

    def _parse_exif_date(self, tags) -> Optional[datetime]:
        """
        Returns the first parseable capture date as an aware datetime.
        Zeroed dates ("0000:00:00 00:00:00" or 0001-01-01) are passed over.
        """
        for tag in config.DATE_TAGS:
            if tag not in tags:
                continue
            dt_str = str(tags[tag]).strip()
            try:
                dt = datetime.strptime(dt_str, config.EXIF_DATE_LAYOUT)
            except ValueError:
                continue

            offset_tag = config.OFFSET_TAGS.get(tag)
            if offset_tag in tags:
                try:
                    offset = datetime.strptime(str(tags[offset_tag]).strip(), "%z")
                    dt = dt.replace(tzinfo=offset.tzinfo)
                except ValueError:
                    pass

            # Without an offset the camera clock is taken as local time
            dt = _usable_time(dt, to_local=dt.tzinfo is None)
            if dt:
                return dt
        return None

    def _read_header_size(self, path: Path, meta: ExtractedMeta):
        try:
            # Image.open only parses the header; pixel data is never loaded
            with Image.open(path) as im:
                meta.width, meta.height = im.size
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            logging.debug(f"Failed to get image size for {path}: {e}")


class VideoExtractor:
    """
    Reads creation time and dimensions from video containers via 'ffprobe'.

    The creation_time layout differs between ffprobe versions, so it is
    chosen by name from config.VIDEO_DATE_LAYOUTS.
    """

    def __init__(self,
                 ffprobe: str = config.FFPROBE_BIN,
                 date_layout: str = config.DEFAULT_VIDEO_DATE_LAYOUT):
        if date_layout not in config.VIDEO_DATE_LAYOUTS:
            raise ValueError(f"Unknown video date layout: {date_layout!r}")
        self.ffprobe = ffprobe
        self.local_layout, self.layout_is_utc = config.VIDEO_DATE_LAYOUTS[date_layout]

    def extract(self, path: Path) -> Outcome:
        try:
            report = self.probe(path)
        except MetadataExtractionError as e:
            logging.warning(f"ffprobe failed for {path}: {e}")
            return Failure(str(e))

        meta = ExtractedMeta()
        meta.width, meta.height = self._dimensions(report)
        meta.time = self._creation_time(report)

        if meta.time is None:
            return Skip("no creation time in probe report", meta)
        return Success(meta)

    def probe(self, path: Path) -> Dict[str, Any]:
        """
        Runs ffprobe and returns the decoded report.
        Must be installed and on the system PATH (or given explicitly).
        """
        cmd = [self.ffprobe, str(path)] + config.FFPROBE_ARGS
        try:
            out = subprocess.check_output(cmd, stderr=subprocess.DEVNULL, text=True)
        except FileNotFoundError:
            raise MetadataExtractionError(f"{self.ffprobe} not found on PATH")
        except subprocess.CalledProcessError as e:
            raise MetadataExtractionError(f"{self.ffprobe} exited with status {e.returncode}")
        except (OSError, UnicodeDecodeError) as e:
            raise MetadataExtractionError(f"{self.ffprobe} output unreadable: {e}")

        return parse_probe_report(out)

    # --- Report Helpers ---

    def _dimensions(self, report: Dict[str, Any]) -> Tuple[int, int]:
        for stream in _streams(report):
            width = stream.get("width") or 0
            height = stream.get("height") or 0
            if stream.get("codec_type") == "video" and width and height:
                return int(width), int(height)
        return 0, 0

    def _creation_time(self, report: Dict[str, Any]) -> Optional[datetime]:
        # Priority: QuickTime creation date -> container creation_time -> streams
        fmt_tags = _tags(report.get("format"))

        dt = _parse_tz_date(fmt_tags.get(config.QT_CREATION_DATE_TAG))
        if dt:
            return dt

        dt = self._parse_local_date(fmt_tags.get(config.CREATION_TIME_TAG))
        if dt:
            return dt

        for stream in _streams(report):
            dt = self._parse_local_date(_tags(stream).get(config.CREATION_TIME_TAG))
            if dt:
                return dt
        return None

    def _parse_local_date(self, value) -> Optional[datetime]:
        if not value:
            return None
        try:
            dt = datetime.strptime(value, self.local_layout)
        except (TypeError, ValueError):
            return None

        if self.layout_is_utc:
            dt = dt.replace(tzinfo=timezone.utc)
        # Naive values are taken as local time; UTC ones are shown in local time
        return _usable_time(dt)


def _parse_tz_date(value) -> Optional[datetime]:
    """QuickTime dates carry their own offset and are used as-is."""
    if not value:
        return None
    try:
        dt = datetime.strptime(value, config.TZ_DATE_LAYOUT)
    except (TypeError, ValueError):
        return None
    return _usable_time(dt, to_local=False)


def _usable_time(dt: datetime, to_local: bool = True) -> Optional[datetime]:
    """
    Returns dt as an aware datetime, or None when it is the zero time
    (0001-01-01 00:00, written by devices with no clock set) or cannot be
    shown in the local zone.
    """
    if dt.replace(tzinfo=None) == datetime.min:
        return None
    if to_local or dt.tzinfo is None:
        try:
            dt = dt.astimezone()
        except (OverflowError, ValueError):
            return None
    if dt == ZERO_TIME:
        return None
    return dt


def _tags(section) -> Dict[str, Any]:
    if not isinstance(section, dict):
        return {}
    tags = section.get("tags")
    return tags if isinstance(tags, dict) else {}


def _streams(report: Dict[str, Any]):
    streams = report.get("streams")
    if not isinstance(streams, list):
        return []
    return [s for s in streams if isinstance(s, dict)]


def parse_probe_report(text: str) -> Dict[str, Any]:
    """
    Decodes ffprobe JSON output.

    Empty output is an empty report. Output that stops part-way (inside an
    open object, array or string) is cut back to its last complete value and
    closed, so whatever fields were already written are still used. Any other
    decode error raises ProbeReportError.
    """
    if not text.strip():
        return {}

    try:
        report = json.loads(text)
    except json.JSONDecodeError as e:
        salvaged = _close_truncated(text)
        if salvaged is None:
            raise ProbeReportError(f"Invalid ffprobe report: {e}")
        try:
            report = json.loads(salvaged)
        except json.JSONDecodeError:
            raise ProbeReportError(f"Invalid ffprobe report: {e}")
        logging.debug("Accepted truncated ffprobe report")

    if not isinstance(report, dict):
        raise ProbeReportError(f"Unexpected ffprobe report type: {type(report).__name__}")
    return report


def _close_truncated(text: str) -> Optional[str]:
    """
    Returns text cut at its last complete value with the open containers
    closed, or None when the input is not merely truncated.
    """
    stack = []
    in_string = False
    escaped = False
    cut = 0
    cut_stack = []

    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == '\\':
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch in '{[':
            stack.append('}' if ch == '{' else ']')
            cut, cut_stack = i + 1, list(stack)
        elif ch in '}]':
            if not stack:
                return None
            stack.pop()
            cut, cut_stack = i + 1, list(stack)
        elif ch == ',':
            cut, cut_stack = i, list(stack)

    # Balanced input that still failed to decode is a syntax error
    if not stack and not in_string:
        return None
    if not cut_stack:
        return None

    prefix = text[:cut].rstrip()
    if prefix.endswith(','):
        prefix = prefix[:-1]
    return prefix + ''.join(reversed(cut_stack))
