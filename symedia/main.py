import argparse
import logging
import sys
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from . import config
from .core import SymediaApp
from .exceptions import SymediaError
from .reporting import DEFAULT_TEMPLATE


def setup_logging(dest_root: Path, verbose: bool):
    """Sets up logging to both console and a file in the destination."""
    log_level = logging.DEBUG if verbose else logging.INFO

    # Create dest root if it doesn't exist so we can log there
    dest_root.mkdir(parents=True, exist_ok=True)
    log_file = dest_root / config.LOG_FILENAME

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[
            logging.FileHandler(log_file, encoding='utf-8'),
            logging.StreamHandler(sys.stdout)
        ]
    )

    # Silence chatty libraries
    logging.getLogger("exifread").setLevel(logging.ERROR)
    logging.getLogger("PIL").setLevel(logging.WARNING)


def get_version() -> str:
    try:
        return version("symedia")
    except PackageNotFoundError:
        return "unknown"


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        prog="symedia",
        description="Hard-link images and videos into a dated folder tree.",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {get_version()}")
    sub = p.add_subparsers(dest="command", required=True)

    proc = sub.add_parser(
        "process",
        help="Process a directory for images and videos, hard-linking them to an output directory.",
        description="Process PATH for images and videos and hard-link them to OUTPUT_DIR. "
                    "Writes a JSON inventory and an HTML report of files needing review. "
                    "OUTPUT_DIR should not be inside PATH.",
    )
    proc.add_argument("path", type=Path, nargs="?", metavar="PATH", help="Source directory to process")
    proc.add_argument("output_dir", type=Path, nargs="?", metavar="OUTPUT_DIR",
                      help=f"Output root (default: ./{config.DEFAULT_OUTPUT_DIR})")

    proc.add_argument("--json", type=Path, default=None,
                      help=f"JSON inventory path (default: OUTPUT_DIR/{config.JSON_FILENAME})")
    proc.add_argument("--template-path", type=Path, default=None,
                      help=f"Custom report template (default: ./{config.TEMPLATE_FILENAME}, else built-in)")
    proc.add_argument("--template-out", type=Path, default=None,
                      help=f"Report output path (default: OUTPUT_DIR/{config.REPORT_FILENAME})")
    proc.add_argument("--print-template", action="store_true", help="Print the built-in template, then exit")

    proc.add_argument("--keep-names", action="store_true",
                      help="Keep original file names instead of naming links by timestamp")
    proc.add_argument("--ffprobe", default=config.FFPROBE_BIN, help="ffprobe executable")
    proc.add_argument("--probe-date-layout", choices=sorted(config.VIDEO_DATE_LAYOUTS),
                      default=config.DEFAULT_VIDEO_DATE_LAYOUT,
                      help="creation_time layout emitted by your ffprobe version")
    proc.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    args = p.parse_args(argv)
    if not args.print_template and args.path is None:
        proc.error("the following arguments are required: PATH")
    return args


def cmd_process(args) -> int:
    if args.print_template:
        print(DEFAULT_TEMPLATE)
        return 0

    if not args.path.exists():
        print(f"No such PATH: {args.path}", file=sys.stderr)
        return 1

    src_root = args.path.resolve()
    dest_root = (args.output_dir or Path.cwd() / config.DEFAULT_OUTPUT_DIR).resolve()

    try:
        setup_logging(dest_root, args.verbose)
    except OSError as e:
        print(f"Cannot create output directory: {dest_root}: {e}", file=sys.stderr)
        return 1

    logging.info("=== symedia started ===")
    logging.info(f"Source: {src_root}")
    logging.info(f"Dest:   {dest_root}")

    app = SymediaApp(
        ffprobe=args.ffprobe,
        date_layout=args.probe_date_layout,
        rename=not args.keep_names,
    )

    try:
        app.process(
            src_root=src_root,
            dest_root=dest_root,
            json_path=args.json,
            template_path=args.template_path,
            template_out=args.template_out,
        )
    except KeyboardInterrupt:
        logging.warning("Operation cancelled by user.")
        return 1
    except SymediaError as e:
        logging.error(str(e))
        return 1

    return 0


def main(argv=None):
    args = parse_args(argv)
    sys.exit(cmd_process(args))


if __name__ == "__main__":
    main()
