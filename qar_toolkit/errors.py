"""Exceptions raised while reading QAR archives."""

import io


class QARError(Exception):
    """Base class for QAR-specific errors."""


class FormatError(QARError, ValueError):
    """The data is not a valid QAR archive (or entry)."""


class CapabilityError(QARError, ValueError):
    """The byte source lacks a capability the archive mode requires."""


class UseAfterCloseError(QARError, ValueError):
    """The archive has already been closed."""


class UnsupportedOperationError(QARError, io.UnsupportedOperation):
    """The operation is not available on this object."""
