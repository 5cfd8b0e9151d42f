"""Generate, install and revert a device-wide hosts redirection file."""

__version__ = "0.3.0"
