import logging
from pathlib import Path
from typing import List, Optional, TextIO

from . import config
from .exceptions import FileOperationError
from .models import FileRecord
from .reporting import ReportGenerator
from .scanning.filesystem import MediaWalker, default_media_kinds


class SymediaApp:
    def __init__(self,
                 ffprobe: str = config.FFPROBE_BIN,
                 date_layout: str = config.DEFAULT_VIDEO_DATE_LAYOUT,
                 rename: bool = True,
                 stream: Optional[TextIO] = None):
        self.walker = MediaWalker(
            kinds=default_media_kinds(ffprobe, date_layout),
            rename=rename,
            stream=stream,
        )
        self.stream = stream

    def process(self,
                src_root: Path,
                dest_root: Path,
                json_path: Optional[Path] = None,
                template_path: Optional[Path] = None,
                template_out: Optional[Path] = None) -> List[FileRecord]:
        """
        Executes the pipeline.
        1. Walk (Classify -> Extract -> Derive -> Link)
        2. Report status lines for files needing review
        3. Write the JSON inventory
        4. Render the HTML error report

        Raises WalkError if src_root cannot be read, ReportError if an
        output cannot be written.
        """
        try:
            dest_root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileOperationError(f"Cannot create output directory: {dest_root}: {e}") from e

        if dest_root.resolve().is_relative_to(src_root.resolve()):
            logging.warning(f"Output {dest_root} is inside the source tree; its links will be walked too.")

        # --- Step 1: Walking ---
        logging.info(f"Processing {src_root} -> {dest_root}")
        records = self.walker.walk(src_root, dest_root)

        # --- Step 2: Review lines ---
        reporter = ReportGenerator(dest_root)
        reporter.log_loggables(records, self.stream)
        reporter.summarize(records)

        # --- Step 3/4: Outputs ---
        reporter.write_json(records, json_path)
        reporter.render_errors(records, template_out, template_path)

        logging.info("Processing complete.")
        return records
