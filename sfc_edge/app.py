# SFC Edge Server
# Author: MD. SABBIR HOSHEN HOOWLADER
# Website: https://sabbir28.github.io/
# License: MIT License
# Description: Serves the SFC lookup UI bundle and forwards /SFCAPI calls to the private SFC backend.

from flask import Flask, g, request
from flask.logging import default_handler

from .config import EdgeConfig
from .logs import setup_logging
from .proxy import forward
from .static import serve_static


def create_app(config=None, console_log=True):
    """
    Build the edge server application.

    Every request is answered from one ``before_request`` hook, ahead of URL
    routing, so any method on any path reaches it. Paths under the API prefix
    are relayed to the SFC backend, everything else is served from the asset
    root.

    Args:
        config (EdgeConfig): Server settings, defaults when omitted
        console_log (bool): Also log to the terminal

    Returns:
        Flask: The configured application
    """
    config = (config or EdgeConfig()).validate()

    app = Flask('sfc_edge', static_folder=None)
    app.config['EDGE'] = config

    app.logger.removeHandler(default_handler)
    setup_logging(app.logger, log_dir=config.log_dir, console=console_log)

    @app.before_request
    def dispatch():
        # Returning here also pre-empts the 404/405 left by the empty URL map
        if request.path.startswith(config.api_prefix):
            g.branch = 'proxy'
            return forward(request, config)
        g.branch = 'static'
        return serve_static(config.public_root, request.path, config.index_file)

    @app.after_request
    def log_request(response):
        app.logger.info(f"{request.method} {request.path} [{g.get('branch', '-')}] {response.status_code}")
        return response

    return app
