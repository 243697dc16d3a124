import json
import logging
import sys
from collections import Counter
from pathlib import Path
from typing import Dict, List, Optional, TextIO

from jinja2 import Environment, TemplateError

from . import config
from .exceptions import ReportError
from .models import FileRecord, Status

# Built-in error report. Receives `out_dir` and `files` (serialized records).
DEFAULT_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>symedia: files needing review</title>
<style>
  body { font-family: sans-serif; margin: 2em; }
  table { border-collapse: collapse; width: 100%; }
  th, td { border-bottom: 1px solid #ddd; padding: 4px 8px; text-align: left; }
  td.flag { font-family: monospace; text-align: center; }
  tr.flag-X { background: #fdd; }
  tr.flag-dot { background: #ffd; }
  tr.flag-q { background: #eee; }
</style>
</head>
<body>
<h1>Files needing review</h1>
<p>Output directory: <code>{{ out_dir }}</code></p>
<p>? unknown &middot; X error &middot; . skipped (no timestamp)</p>
{% set review = files | selectattr("flag", "in", ["?", "X", "."]) | list %}
{% if review %}
<table>
  <tr><th>Flag</th><th>File</th><th>Ext</th><th>Size</th><th>Dimensions</th></tr>
  {% for f in review %}
  <tr class="flag-{{ {'?': 'q', 'X': 'X', '.': 'dot'}[f.flag] }}">
    <td class="flag">{{ f.flag }}</td>
    <td><a href="file://{{ f.origin }}">{{ f.origin }}</a></td>
    <td>{{ f.ext }}</td>
    <td>{{ f.size }}</td>
    <td>{% if f.width and f.height %}{{ f.width }}&times;{{ f.height }}{% endif %}</td>
  </tr>
  {% endfor %}
</table>
{% else %}
<p>Nothing to review: all {{ files | length }} files were placed.</p>
{% endif %}
</body>
</html>
"""


class ReportGenerator:
    """
    Writes the outputs of a run: status lines for files that need a look,
    the JSON inventory and the HTML error report.
    """

    def __init__(self, out_dir: Path):
        self.out_dir = Path(out_dir)
        self.env = Environment(autoescape=True)

    def log_loggables(self, records: List[FileRecord], stream: Optional[TextIO] = None):
        """One "<marker>\\t<origin>" line per unclassified, errored or skipped file."""
        stream = stream or sys.stderr
        for record in records:
            if record.status.is_loggable:
                stream.write(f"{record.status.marker}\t{record.origin}\n")
        stream.flush()

    def summarize(self, records: List[FileRecord]) -> Dict[Status, int]:
        counts = Counter(r.status for r in records)
        logging.info(
            "Visited %d files: %d images, %d videos, %d already linked, "
            "%d skipped, %d errors, %d unknown",
            len(records),
            counts[Status.IMAGE], counts[Status.VIDEO], counts[Status.ALREADY_LINKED],
            counts[Status.SKIPPED], counts[Status.ERROR], counts[Status.UNCLASSIFIED],
        )
        return dict(counts)

    def write_json(self, records: List[FileRecord], json_path: Optional[Path] = None) -> Path:
        json_path = Path(json_path) if json_path else self.out_dir / config.JSON_FILENAME
        payload = json.dumps([r.to_dict() for r in records], indent="\t", ensure_ascii=False)
        try:
            json_path.write_text(payload, encoding="utf-8")
        except OSError as e:
            raise ReportError(f"Cannot write json: {json_path}: {e}") from e

        logging.info(f"Inventory written to {json_path}")
        return json_path

    def load_template(self, template_path: Optional[Path] = None) -> str:
        """
        Template lookup: the given path, else error-template.html in the
        working directory, else the built-in template.
        """
        if template_path is None:
            candidate = Path.cwd() / config.TEMPLATE_FILENAME
            template_path = candidate if candidate.is_file() else None

        if template_path is None:
            return DEFAULT_TEMPLATE

        template_path = Path(template_path)
        if not template_path.exists():
            logging.info(f"Template {template_path} not found, using the built-in one.")
            return DEFAULT_TEMPLATE

        try:
            return template_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ReportError(f"Cannot read template file: {template_path}: {e}") from e

    def render_errors(self,
                      records: List[FileRecord],
                      template_out: Optional[Path] = None,
                      template_path: Optional[Path] = None) -> Path:
        template_out = Path(template_out) if template_out else self.out_dir / config.REPORT_FILENAME
        source = self.load_template(template_path)

        try:
            template = self.env.from_string(source)
            rendered = template.render(
                out_dir=str(self.out_dir),
                files=[r.to_dict() for r in records],
            )
        except TemplateError as e:
            raise ReportError(f"Cannot render template {template_path or '<built-in>'}: {e}") from e

        try:
            template_out.write_text(rendered, encoding="utf-8")
        except OSError as e:
            raise ReportError(f"Cannot write error report: {template_out}: {e}") from e

        logging.info(f"Error report written to {template_out}")
        return template_out
