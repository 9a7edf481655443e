from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("broker-client-status")
except PackageNotFoundError:
    __version__ = "local"
