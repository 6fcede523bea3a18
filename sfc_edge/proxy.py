# SFC Edge Server
# Author: MD. SABBIR HOSHEN HOOWLADER
# Website: https://sabbir28.github.io/
# License: MIT License
# Description: Serves the SFC lookup UI bundle and forwards /SFCAPI calls to the private SFC backend.

"""
Pass-through relay from the edge server to the SFC backend.

Each relay owns its own ``requests.Session`` and upstream connection, so an
upstream failure on one request can never disturb another one in flight.
Bodies are streamed in both directions and never decoded.
"""

import logging
from urllib.parse import quote

import requests
from flask import Response
from requests.structures import CaseInsensitiveDict
from urllib3.util import SKIP_HEADER

from .config import BUFFER_SIZE
from .errors import UpstreamError

logger = logging.getLogger(__name__)

# Describe a single connection, so they are never relayed (RFC 7230 6.1)
HOP_BY_HOP_HEADERS = {
    'connection',
    'keep-alive',
    'proxy-authenticate',
    'proxy-authorization',
    'proxy-connection',
    'te',
    'trailer',
    'trailers',
    'transfer-encoding',
    'upgrade',
}

# Recomputed by the upstream client from the body we hand it
FRAMING_HEADERS = {'host', 'content-length'}

# Sent by urllib3 when missing, so they are suppressed unless the caller sent them
TRANSPORT_DEFAULT_HEADERS = ('Accept-Encoding', 'User-Agent')

URI_SAFE_CHARS = "/:@!$&'()*+,;=-._~%"


class BodyReader:
    """
    File-like view over the inbound body with a known length.

    ``requests`` picks up the length through ``__len__`` and sends a plain
    Content-Length body, reading it back in ``BUFFER_SIZE`` blocks.
    """

    def __init__(self, stream, length):
        self.stream = stream
        self.length = length

    def __len__(self):
        return self.length

    def read(self, size=BUFFER_SIZE):
        if size is None or size < 0:
            size = BUFFER_SIZE
        return self.stream.read(size)

    def __iter__(self):
        return iter(lambda: self.stream.read(BUFFER_SIZE), b'')


def upstream_target(req):
    """Return the original request target (path plus query string)."""
    target = req.environ.get('RAW_URI') or req.environ.get('REQUEST_URI')
    query = req.query_string.decode('latin-1')

    if not target or not target.startswith('/'):
        target = quote(req.script_root + req.path, safe=URI_SAFE_CHARS)
        if query:
            target += '?' + query
    elif query and '?' not in target:
        target += '?' + query
    return target


def upstream_headers(req):
    """
    Copy the inbound headers minus Host and the connection-level ones.

    Repeated headers are folded into one line, ``'; '`` for Cookie and
    ``', '`` for everything else. Headers urllib3 would add on its own
    are marked to be skipped unless the caller sent them.
    """
    headers = CaseInsensitiveDict()
    for key, value in req.headers.items():
        name = key.lower()
        if name in HOP_BY_HOP_HEADERS or name in FRAMING_HEADERS:
            continue
        if key in headers:
            separator = '; ' if name == 'cookie' else ', '
            headers[key] = headers[key] + separator + value
        else:
            headers[key] = value

    for name in TRANSPORT_DEFAULT_HEADERS:
        if name not in headers:
            headers[name] = SKIP_HEADER
    return headers


def upstream_body(req):
    """
    Pick how the inbound body is handed to ``requests``.

    Returns:
        BodyReader for a Content-Length body, a chunk generator for a
        chunked body, or None when the request carries no body.
    """
    if 'chunked' in req.headers.get('Transfer-Encoding', '').lower():
        stream = req.stream
        return iter(lambda: stream.read(BUFFER_SIZE), b'')
    if req.content_length:
        return BodyReader(req.stream, req.content_length)
    return None


def open_upstream(req, config):
    """
    Send the request upstream and return once the status line and headers
    have arrived.

    Args:
        req (flask.Request): The inbound request
        config (EdgeConfig): Supplies the upstream address and timeouts

    Returns:
        tuple: (session, response) with the body still unread

    Raises:
        UpstreamError: If connecting, sending or waiting for the response fails
    """
    url = config.api_target + upstream_target(req)

    session = requests.Session()
    # No session default headers and no env proxies
    session.headers.clear()
    session.trust_env = False

    try:
        response = session.request(
            req.method,
            url,
            headers=upstream_headers(req),
            data=upstream_body(req),
            stream=True,
            allow_redirects=False,
            timeout=(config.connect_timeout, config.read_timeout),
        )
    except requests.exceptions.RequestException as e:
        session.close()
        raise UpstreamError(url, e) from e

    return session, response


def relay_body(session, response, url):
    """Yield the raw upstream body, closing the upstream connection at the end."""
    try:
        for chunk in response.raw.stream(BUFFER_SIZE, decode_content=False):
            yield chunk
    except Exception as e:
        logger.error(f"Proxy error while relaying {url}: {e}")
        raise UpstreamError(url, e) from e
    finally:
        response.close()
        session.close()


def response_headers(response):
    # iteritems keeps repeated headers such as Set-Cookie apart
    return [
        (key, value) for key, value in response.raw.headers.iteritems()
        if key.lower() not in HOP_BY_HOP_HEADERS
    ]


def forward(req, config):
    """
    Relay one request to the SFC backend and stream the answer back.

    Failures before the upstream answers are turned into a 500 with a short
    body. Nothing is retried.
    """
    try:
        session, upstream = open_upstream(req, config)
    except UpstreamError as e:
        logger.error(f"Proxy error: {e.cause}")
        return Response('Proxy Error', status=500, content_type='text/plain')

    status = upstream.status_code
    if upstream.reason:
        status = f"{upstream.status_code} {upstream.reason}"

    response = Response(
        relay_body(session, upstream, upstream.url),
        status=status,
        headers=response_headers(upstream),
    )
    if 'Content-Type' not in upstream.headers:
        # Werkzeug fills in a default type, the upstream did not send one
        del response.headers['Content-Type']
    return response
