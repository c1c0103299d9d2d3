# main.py
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import get_settings, load_settings
from .exceptions import TreeWalkError
from .server import create_server, resolve_request_path
from .walker import walk


def setup_logging(settings=None):
    """Configures logging to console and, when LOG_FILE is set, to a file."""
    settings = settings or get_settings()
    log_level_name = settings.LOG_LEVEL.upper()

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level_name)

    # Clear any existing handlers to prevent duplicate logs on re-runs or implicit configs
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    root_logger.addHandler(stream_handler)

    if settings.LOG_FILE:
        try:
            file_handler = logging.FileHandler(settings.LOG_FILE)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            # Log to console if file logging fails (e.g., permissions)
            root_logger.error(f"Failed to set up file logging to {settings.LOG_FILE}: {e}")


def run_once(request_path: str, settings=None) -> int:
    """
    Walks one path, resolved against ROOT_DIR the same way an HTTP request is,
    prints its JSON document and returns a process exit code.
    """
    settings = settings or get_settings()
    try:
        path = resolve_request_path(settings.ROOT_DIR, request_path)
        record = walk(path)
    except TreeWalkError as e:
        logging.error(f"Could not describe {request_path} ({e.kind}): {e}")
        return 1
    print(record.to_json(indent=settings.JSON_INDENT))
    return 0


def serve(settings) -> None:
    server = create_server(settings)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logging.info("Interrupted, shutting down.")
    finally:
        server.server_close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Serve gzipped-size and modification-time trees of a directory over HTTP."
    )
    parser.add_argument("--host", help="Interface to listen on (overrides HOST).")
    parser.add_argument("--port", type=int, help="Port to listen on (overrides PORT).")
    parser.add_argument("--root", help="Directory to serve (overrides ROOT_DIR).")
    parser.add_argument(
        "--run-once",
        metavar="PATH",
        help="Describe one path under the serve root, print the JSON document and exit.",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.root is not None and not Path(args.root).is_dir():
        parser.error(f"--root must be an existing directory: {args.root}")

    overrides = {}
    if args.host is not None:
        overrides["HOST"] = args.host
    if args.port is not None:
        overrides["PORT"] = args.port
    if args.root is not None:
        overrides["ROOT_DIR"] = Path(args.root).resolve()
    settings = load_settings(**overrides)

    setup_logging(settings)

    if args.run_once:
        logging.info("Starting in single-run mode.")
        return run_once(args.run_once, settings)

    logging.info("Starting metadata server.")
    serve(settings)
    return 0


if __name__ == "__main__":
    sys.exit(main())
