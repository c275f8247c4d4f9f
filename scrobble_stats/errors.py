"""Batch-fatal import errors."""


class ScrobbleImportError(Exception):
    """Base class for errors that fail a whole import."""


class MalformedInputError(ScrobbleImportError):
    """Input bytes are not valid UTF-8 JSON."""


class UnsupportedShapeError(ScrobbleImportError):
    """JSON document matches none of the recognized export shapes."""


class StorageCommitError(ScrobbleImportError):
    """The batch transaction could not be committed and was rolled back."""
