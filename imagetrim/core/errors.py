"""Exceptions raised by the trim pipeline."""


class ImageTrimError(Exception):
    """Base class for every error raised by imagetrim."""


class ConfigError(ImageTrimError):
    """The transfer configuration does not allow a run."""


class DirectoryReadError(ImageTrimError):
    """The source directory could not be listed."""


class DecodeError(ImageTrimError):
    """A file could not be decoded as an image."""


class EncodeError(ImageTrimError):
    """A trimmed image could not be encoded or written."""


class CopyError(ImageTrimError):
    """An unchanged file could not be copied to the destination."""
