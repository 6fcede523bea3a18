# SFC Edge Server
# Author: MD. SABBIR HOSHEN HOOWLADER
# Website: https://sabbir28.github.io/
# License: MIT License
# Description: Serves the SFC lookup UI bundle and forwards /SFCAPI calls to the private SFC backend.


class EdgeError(Exception):
    """Base class for every error raised by the edge server."""


class ConfigError(EdgeError):
    """Raised at startup when the configuration cannot be used."""


class UpstreamError(EdgeError):
    """
    Raised when the upstream SFC host cannot be reached or fails before
    a response status is available.

    Attributes:
        url (str): The upstream URL the relay was targeting
        cause (Exception): The underlying transport error
    """

    def __init__(self, url, cause):
        self.url = url
        self.cause = cause
        super().__init__(f"{url}: {cause}")
