# SFC Edge Server
# Author: MD. SABBIR HOSHEN HOOWLADER
# Website: https://sabbir28.github.io/
# License: MIT License
# Description: Serves the SFC lookup UI bundle and forwards /SFCAPI calls to the private SFC backend.

from .app import create_app
from .config import EdgeConfig

__version__ = '1.0.0'
