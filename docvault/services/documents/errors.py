class DocumentError(Exception):
    """Base class for document domain errors."""

    status_code = 500


class UnrecognizedType(DocumentError):
    status_code = 400


class UploadTooLarge(DocumentError):
    status_code = 413


class RecordNotFound(DocumentError):
    status_code = 404


class ObjectNotFound(DocumentError):
    status_code = 404


class StorageUnavailable(DocumentError):
    pass


class CatalogUnavailable(DocumentError):
    pass


class VersionCommitFailed(DocumentError):
    pass


class PreviewError(DocumentError):
    """Raised inside the rendering pipeline; always converted to a placeholder image."""


class EmptyBuffer(PreviewError):
    pass


class UnsupportedDocument(PreviewError):
    pass


class ConversionFailed(PreviewError):
    pass


class TimeoutExceeded(ConversionFailed):
    pass
