"""Spotify OSC bridge"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("spotify-osc")
except PackageNotFoundError:
    __version__ = "dev"
