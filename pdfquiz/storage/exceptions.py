from pdfquiz.processor.errors import ClassifiedError, ErrorKind


class StorageError(ClassifiedError):
    """Raised when the object or record store cannot be reached."""

    kind = ErrorKind.STORAGE_UNAVAILABLE


class ObjectNotFoundError(StorageError):
    """Raised when a stored payload no longer exists."""

    kind = ErrorKind.DOCUMENT_NOT_FOUND
