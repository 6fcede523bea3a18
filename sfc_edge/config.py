# SFC Edge Server
# Author: MD. SABBIR HOSHEN HOOWLADER
# Website: https://sabbir28.github.io/
# License: MIT License
# Description: Serves the SFC lookup UI bundle and forwards /SFCAPI calls to the private SFC backend.

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional, Tuple
from urllib.parse import urlparse

from .errors import ConfigError

# Configuration
LISTENING_ADDR = '0.0.0.0'  # The address on which the edge server listens
LISTENING_PORT = 3000  # The port on which the edge server listens
API_PREFIX = '/SFCAPI'  # Requests under this path are forwarded upstream
API_HOST = '10.16.137.111'  # The private SFC backend
API_PORT = 80
PUBLIC_DIR = 'dist'  # Built UI bundle
INDEX_FILE = 'index.html'  # Entry document for / and the SPA fallback
BUFFER_SIZE = 65536  # Chunk size for relayed bodies (64 KB)
CONNECT_TIMEOUT = 10.0
READ_TIMEOUT = 60.0
LOG_DIR = 'logs'

ENV_PREFIX = 'SFC_EDGE_'


def parse_target(url: str) -> Tuple[str, int]:
    """
    Split an upstream target such as ``http://10.16.137.111`` or
    ``http://sfc.local:8080`` into host and port.

    Raises:
        ConfigError: If the scheme is not plain http or the host is missing
    """
    if '://' not in url:
        url = 'http://' + url
    parsed = urlparse(url)
    if parsed.scheme != 'http':
        raise ConfigError(f"Upstream target must use plain http, got {url!r}")
    if not parsed.hostname:
        raise ConfigError(f"Upstream target has no host: {url!r}")
    try:
        port = parsed.port or API_PORT
    except ValueError as e:
        raise ConfigError(f"Invalid upstream port in {url!r}: {e}") from e
    return parsed.hostname, port


@dataclass(frozen=True)
class EdgeConfig:
    """
    Immutable settings shared read-only by every request handler.

    Attributes:
        host (str): Listening address
        port (int): Listening port
        api_prefix (str): Path prefix marking API traffic
        api_host (str): Upstream SFC host
        api_port (int): Upstream SFC port
        public_dir (str): Asset root holding the built UI
        index_file (str): Entry document name inside ``public_dir``
        connect_timeout (float): Seconds to wait for the upstream connection
        read_timeout (float): Seconds to wait between upstream reads
        log_dir (Optional[str]): Directory for rotating log files, None disables them
    """
    host: str = LISTENING_ADDR
    port: int = LISTENING_PORT
    api_prefix: str = API_PREFIX
    api_host: str = API_HOST
    api_port: int = API_PORT
    public_dir: str = PUBLIC_DIR
    index_file: str = INDEX_FILE
    connect_timeout: float = CONNECT_TIMEOUT
    read_timeout: float = READ_TIMEOUT
    log_dir: Optional[str] = LOG_DIR

    @property
    def api_target(self) -> str:
        if self.api_port == 80:
            return f"http://{self.api_host}"
        return f"http://{self.api_host}:{self.api_port}"

    @property
    def public_root(self) -> str:
        return os.path.abspath(self.public_dir)

    def with_overrides(self, **changes) -> 'EdgeConfig':
        """Return a copy with every non-None keyword applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    def validate(self) -> 'EdgeConfig':
        if not 0 < self.port < 65536:
            raise ConfigError(f"Listening port out of range: {self.port}")
        if not 0 < self.api_port < 65536:
            raise ConfigError(f"Upstream port out of range: {self.api_port}")
        if not self.api_prefix.startswith('/') or self.api_prefix == '/':
            raise ConfigError(f"API prefix must be a non-root absolute path: {self.api_prefix!r}")
        if self.connect_timeout <= 0 or self.read_timeout <= 0:
            raise ConfigError("Timeouts must be positive")
        if not self.index_file or '/' in self.index_file:
            raise ConfigError(f"Invalid entry document name: {self.index_file!r}")
        return self

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'EdgeConfig':
        """
        Build a config from ``SFC_EDGE_*`` variables.

        ``SFC_API_TARGET`` (or ``SFC_EDGE_API_TARGET``) takes a full
        ``http://host[:port]`` target and sets host and port together.
        """
        if environ is None:
            environ = os.environ

        def get(name):
            value = environ.get(ENV_PREFIX + name)
            return value if value else None

        def number(name, kind):
            value = get(name)
            if value is None:
                return None
            try:
                return kind(value)
            except ValueError as e:
                raise ConfigError(f"{ENV_PREFIX}{name} is not a valid {kind.__name__}: {value!r}") from e

        api_host, api_port = get('API_HOST'), number('API_PORT', int)
        target = environ.get('SFC_API_TARGET') or get('API_TARGET')
        if target:
            api_host, api_port = parse_target(target)

        return cls().with_overrides(
            host=get('HOST'),
            port=number('PORT', int),
            api_prefix=get('API_PREFIX'),
            api_host=api_host,
            api_port=api_port,
            public_dir=get('PUBLIC_DIR'),
            index_file=get('INDEX_FILE'),
            connect_timeout=number('CONNECT_TIMEOUT', float),
            read_timeout=number('READ_TIMEOUT', float),
            log_dir=get('LOG_DIR'),
        )
