# SFC Edge Server
# Author: MD. SABBIR HOSHEN HOOWLADER
# Website: https://sabbir28.github.io/
# License: MIT License
# Description: Serves the SFC lookup UI bundle and forwards /SFCAPI calls to the private SFC backend.

import argparse
import os
import sys

from rich.console import Console
from rich.panel import Panel

from .app import create_app
from .config import EdgeConfig, parse_target
from .errors import ConfigError

console = Console()


def build_parser():
    parser = argparse.ArgumentParser(description="SFC lookup edge server: static UI bundle plus /SFCAPI proxy")
    parser.add_argument("-H", "--host", help="Bind address")
    parser.add_argument("-p", "--port", type=int, help="Port to listen")
    parser.add_argument("--api-target", help="Upstream SFC backend, e.g. http://10.16.137.111")
    parser.add_argument("--api-prefix", help="Path prefix forwarded to the backend")
    parser.add_argument("--public-dir", help="Directory with the built UI bundle")
    parser.add_argument("--log-dir", help="Directory for access.log and error.log")
    parser.add_argument("--debug", action="store_true", help="Run Flask in debug mode")
    return parser


def load_config(args, environ=None):
    """Layer command line flags over the environment and the defaults."""
    config = EdgeConfig.from_env(environ)
    api_host = api_port = None
    if args.api_target:
        api_host, api_port = parse_target(args.api_target)
    return config.with_overrides(
        host=args.host,
        port=args.port,
        api_prefix=args.api_prefix,
        api_host=api_host,
        api_port=api_port,
        public_dir=args.public_dir,
        log_dir=args.log_dir,
    ).validate()


def startup_panel(config):
    shown_host = 'localhost' if config.host in ('0.0.0.0', '') else config.host
    return Panel(
        f"[bold]Server running at:[/bold] http://{shown_host}:{config.port}/\n"
        f"[bold]Static files:[/bold] {config.public_root}\n"
        f"[bold]Proxying:[/bold] {config.api_prefix} to {config.api_target}",
        title="[bold cyan]SFC Edge Server[/bold cyan]",
        border_style="green",
        padding=(1, 2),
    )


def main(argv=None):
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args)
    except ConfigError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {e}")
        return 1

    if not os.path.isdir(config.public_root):
        console.print(f"[yellow]Warning:[/yellow] static directory {config.public_root} does not exist, every page will fail")

    app = create_app(config)
    console.print(startup_panel(config))

    try:
        app.run(host=config.host, port=config.port, threaded=True, debug=args.debug, use_reloader=False)
    except OSError as e:
        console.print(f"[bold red]Failed to start server on {config.host}:{config.port}:[/bold red] {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
