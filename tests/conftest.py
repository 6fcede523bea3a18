import gzip
import hashlib
import socket
import threading
import time
from contextlib import contextmanager

import pytest
from flask import Flask, Response, jsonify, redirect, request
from werkzeug.serving import make_server

from sfc_edge import EdgeConfig, create_app

INDEX_HTML = b'<!doctype html><html><body><div id="root"></div></body></html>'
BIG_DOWNLOAD = bytes(range(256)) * 12288  # 3 MB
GZIP_BODY = gzip.compress(b'{"ok": true}', mtime=0)
METHODS = ['GET', 'HEAD', 'POST', 'PUT', 'DELETE', 'PATCH', 'OPTIONS', 'PROPFIND', 'TRACE']


def build_upstream():
    """A stand-in SFC backend that reports back what it received."""
    app = Flask('sfc_upstream_mock')

    @app.route('/', defaults={'path': ''}, methods=METHODS)
    @app.route('/<path:path>', methods=METHODS)
    def catch_all(path):
        body = request.get_data()

        if path == 'SFCAPI/slow':
            time.sleep(0.5)
        elif path == 'SFCAPI/teapot':
            resp = Response(b'short and stout', status=418, content_type='text/plain')
            resp.headers['X-Upstream'] = 'sfc'
            resp.headers.add('Set-Cookie', 'a=1')
            resp.headers.add('Set-Cookie', 'b=2')
            return resp
        elif path == 'SFCAPI/big':
            return Response(BIG_DOWNLOAD, content_type='application/octet-stream')
        elif path == 'SFCAPI/gzip':
            return Response(GZIP_BODY, content_type='application/json',
                            headers={'Content-Encoding': 'gzip'})
        elif path == 'SFCAPI/moved':
            return redirect('/SFCAPI/elsewhere', code=302)

        return jsonify(
            method=request.method,
            path=request.path,
            query=request.query_string.decode(),
            headers=dict(request.headers),
            length=len(body),
            sha256=hashlib.sha256(body).hexdigest(),
            body=body.decode('utf-8', 'replace') if len(body) < 4096 else None,
        )

    return app


@contextmanager
def running(app):
    """Serve a WSGI app on a free local port for the duration of the block."""
    server = make_server('127.0.0.1', 0, app, threaded=True)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield '127.0.0.1', server.server_port
    finally:
        server.shutdown()
        thread.join(timeout=5)


@pytest.fixture(scope='session')
def upstream():
    with running(build_upstream()) as address:
        yield address


@pytest.fixture
def closed_port():
    """A local port with nothing listening on it."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(('127.0.0.1', 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


@pytest.fixture
def public_dir(tmp_path):
    root = tmp_path / 'dist'
    (root / 'assets').mkdir(parents=True)
    (root / 'index.html').write_bytes(INDEX_HTML)
    (root / 'assets' / 'app.js').write_bytes(b'console.log("sfc");')
    (root / 'assets' / 'style.css').write_bytes(b'body { margin: 0; }')
    (root / 'assets' / 'rack.svg').write_bytes(b'<svg xmlns="http://www.w3.org/2000/svg"/>')
    (root / 'assets' / 'logo.png').write_bytes(b'\x89PNG\r\n\x1a\n\x00\x00')
    (root / 'assets' / 'photo.jpg').write_bytes(b'\xff\xd8\xff\xe0')
    (root / 'manifest.json').write_bytes(b'{"name": "SFC Lookup"}')
    (root / 'font.woff2').write_bytes(b'wOF2')
    (tmp_path / 'secret.txt').write_bytes(b'outside the asset root')
    return root


@pytest.fixture
def make_edge(public_dir):
    def factory(api_host='127.0.0.1', api_port=80, **overrides):
        config = EdgeConfig(
            public_dir=str(public_dir),
            api_host=api_host,
            api_port=api_port,
            log_dir=None,
            connect_timeout=2,
            read_timeout=5,
        ).with_overrides(**overrides)
        app = create_app(config, console_log=False)
        app.config['TESTING'] = True
        return app
    return factory


@pytest.fixture
def client(make_edge, upstream):
    host, port = upstream
    return make_edge(api_host=host, api_port=port).test_client()


@pytest.fixture
def live_edge(make_edge, upstream):
    """The edge server itself behind a real socket, for raw header checks."""
    host, port = upstream
    with running(make_edge(api_host=host, api_port=port)) as address:
        yield address
