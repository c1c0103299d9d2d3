# server.py
import logging
import os
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from urllib.parse import unquote

from .config import get_settings
from .exceptions import NotFoundError, TreeWalkError
from .walker import walk


def resolve_request_path(root_dir: Path, request_path: str) -> str:
    """
    Translates an inbound URL path into an absolute filesystem path under ``root_dir``.

    :raises NotFoundError: the normalised path escapes ``root_dir``.
    """
    root = os.path.abspath(root_dir)
    # A leading "//" is part of the path here, never a network location.
    url_path = unquote(request_path.split("?", 1)[0].split("#", 1)[0])
    candidate = os.path.normpath(os.path.join(root, url_path.lstrip("/")))
    if os.path.commonpath([root, candidate]) != root:
        raise NotFoundError(f"Path escapes the serve root: {request_path}", url_path)
    return candidate


class FileMetadataHandler(BaseHTTPRequestHandler):
    """Answers ``GET <path>`` with the JSON metadata tree of that path."""

    server_version = "dirsize"

    def do_GET(self):
        try:
            path = resolve_request_path(self.server.root_dir, self.path)
        except NotFoundError as e:
            logging.info(f"Rejected request for {self.path}: {e}")
            self._send_text(HTTPStatus.NOT_FOUND, "File not found")
            return

        try:
            record = walk(path)
        except NotFoundError:
            logging.info(f"Requested path not found: {path}")
            self._send_text(HTTPStatus.NOT_FOUND, "File not found")
            return
        except TreeWalkError as e:
            logging.error(f"Error reading {path} ({e.kind}): {e}", exc_info=True)
            self._send_text(HTTPStatus.INTERNAL_SERVER_ERROR, "Error reading file")
            return
        except Exception as e:
            logging.critical(f"Unexpected error while walking {path}: {e}", exc_info=True)
            self._send_text(HTTPStatus.INTERNAL_SERVER_ERROR, "Error reading file")
            return

        try:
            body = record.to_json(indent=self.server.json_indent).encode("utf-8") + b"\n"
        except ValueError as e:
            logging.error(f"Error generating JSON for {path}: {e}", exc_info=True)
            self._send_text(HTTPStatus.INTERNAL_SERVER_ERROR, "Error generating JSON")
            return

        self.send_response(HTTPStatus.OK)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _send_text(self, status: HTTPStatus, message: str):
        body = f"{message}\n".encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        logging.info(f"{self.address_string()} - {format % args}")


class MetadataHTTPServer(ThreadingHTTPServer):
    """Threaded HTTP server bound to one serve root."""

    daemon_threads = True

    def __init__(self, server_address, root_dir: Path, json_indent: int = 2):
        self.root_dir = Path(root_dir).resolve()
        self.json_indent = json_indent
        super().__init__(server_address, FileMetadataHandler)


def create_server(settings=None) -> MetadataHTTPServer:
    """Builds a server from the service settings without starting it."""
    settings = settings or get_settings()
    server = MetadataHTTPServer(
        (settings.HOST, settings.PORT),
        root_dir=settings.ROOT_DIR,
        json_indent=settings.JSON_INDENT,
    )
    logging.info(
        f"Serving metadata for {server.root_dir} on {settings.HOST}:{server.server_address[1]}"
    )
    return server
