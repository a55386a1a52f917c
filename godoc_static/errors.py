"""Errors raised by godoc-static. Only cli.main decides what is fatal."""


class GodocStaticError(Exception):
    pass


class ConfigError(GodocStaticError):
    """Bad flags, unreadable site files or no packages to document."""


class ListingError(GodocStaticError):
    """The go toolchain could not list a package."""


class BackendError(GodocStaticError):
    """godoc could not be started or returned something unusable."""


class FetchTimeout(BackendError):
    """godoc did not answer before the deadline."""


class PageError(GodocStaticError):
    """A page could not be fetched, transformed or written."""


class OutputError(GodocStaticError):
    pass
