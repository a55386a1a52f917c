"""Generate a static copy of godoc's package documentation."""

__version__ = "0.1.0"
