"""Spotify Controller Bridge"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("spotify-controller-bridge")
except PackageNotFoundError:
    __version__ = "1.0.0"

# Version string reported to legacy controller clients
BRIDGE_VERSION = f"{__version__}-bridge"
