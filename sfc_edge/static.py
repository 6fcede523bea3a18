# SFC Edge Server
# Author: MD. SABBIR HOSHEN HOOWLADER
# Website: https://sabbir28.github.io/
# License: MIT License
# Description: Serves the SFC lookup UI bundle and forwards /SFCAPI calls to the private SFC backend.

"""
Static file handling for the built UI bundle.

Every path is normalized before it touches the filesystem, so a request can
never read outside the asset root. Paths that match no file fall back to the
entry document when they have no extension, which lets the single page app
handle deep links such as ``/device/ABC123``.
"""

import logging
import os
import posixpath
from typing import Optional

from flask import Response

from .config import INDEX_FILE

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    '.js': 'text/javascript',
    '.css': 'text/css',
    '.json': 'application/json',
    '.png': 'image/png',
    '.jpg': 'image/jpg',
    '.svg': 'image/svg+xml',
    '.html': 'text/html',
}
DEFAULT_CONTENT_TYPE = 'application/octet-stream'


def content_type_for(path: str) -> str:
    """Map a file extension to the Content-Type sent with it."""
    return CONTENT_TYPES.get(posixpath.splitext(path)[1], DEFAULT_CONTENT_TYPE)


def normalize_path(url_path: str, index_file: str = INDEX_FILE) -> str:
    """
    Collapse ``.`` and ``..`` so the result stays under ``/``.

    Segments that try to climb above the root are dropped rather than
    rejected: ``/../../etc/passwd`` becomes ``/etc/passwd``. The root itself
    becomes the entry document.
    """
    path = url_path.replace('\\', '/')
    # normpath keeps a leading '//' as-is
    path = posixpath.normpath('/' + path.lstrip('/'))
    if path == '/':
        return '/' + index_file
    return path


def resolve(root: str, url_path: str, index_file: str = INDEX_FILE) -> Optional[str]:
    """
    Return the absolute filesystem path for ``url_path`` under ``root``,
    or None when it would land outside the root (e.g. through a symlink).
    """
    normalized = normalize_path(url_path, index_file)
    if '\x00' in normalized:
        return None
    real_root = os.path.realpath(root)
    candidate = os.path.realpath(os.path.join(real_root, normalized.lstrip('/')))
    if os.path.commonpath([real_root, candidate]) != real_root:
        return None
    return candidate


def _plain(status: int, message: str) -> Response:
    return Response(message, status=status, content_type='text/plain')


def serve_index(root: str, index_file: str = INDEX_FILE) -> Response:
    """Send the entry document, or 500 if the bundle was deployed without one."""
    index_path = os.path.join(root, index_file)
    try:
        with open(index_path, 'rb') as f:
            content = f.read()
    except OSError as e:
        logger.error(f"Error loading {index_path}: {e}")
        return _plain(500, f"Error loading {index_file}")
    return Response(content, status=200, content_type='text/html')


def serve_static(root: str, url_path: str, index_file: str = INDEX_FILE) -> Response:
    """
    Answer a non-API request from the asset root.

    Args:
        root (str): The asset root directory
        url_path (str): The decoded request path, e.g. ``/assets/app.js``
        index_file (str): Entry document used for ``/`` and the SPA fallback

    Returns:
        Response: 200 with the file or entry document, 404 for a missing
        file with an extension, 500 when a file cannot be read
    """
    normalized = normalize_path(url_path, index_file)
    if normalized == '/' + index_file:
        return serve_index(root, index_file)

    file_path = resolve(root, url_path, index_file)

    if file_path is None or not os.path.isfile(file_path):
        if posixpath.splitext(normalized)[1] == '':
            return serve_index(root, index_file)
        return _plain(404, 'Not found')

    try:
        with open(file_path, 'rb') as f:
            content = f.read()
    except OSError as e:
        logger.error(f"Error reading {file_path}: {e}")
        return _plain(500, 'Server Error')

    return Response(content, status=200, content_type=content_type_for(file_path))
