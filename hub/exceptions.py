"""Custom exception classes for the hub."""


class LanShareError(Exception):
    """
    Base exception class for all hub errors.
    """
    pass


class InvalidInputError(LanShareError):
    """
    Raised when a required field, file stream or query parameter is missing.
    """
    pass


class NotFoundError(LanShareError):
    """
    Raised when a record or blob is absent, or a listing matched nothing.
    """
    pass


class FileRecordNotFoundError(NotFoundError):
    """
    Raised when no FileRecord exists for the requested id.
    """
    pass


class NoFilesFoundError(NotFoundError):
    """
    Raised when a list or search produced an empty result set.
    """
    pass


class BlobNotFoundError(NotFoundError):
    """
    Raised when the storage provider does not know a blob reference.
    """
    pass


class UpstreamStorageError(LanShareError):
    """
    Raised when the blob storage provider fails, before or during streaming.
    """
    pass


class MetadataPersistError(LanShareError):
    """
    Raised when a FileRecord could not be written to the metadata store.
    """
    pass


class MetadataStoreError(LanShareError):
    """
    Raised when the metadata store cannot be read.
    """
    pass


class UserAlreadyExistsError(LanShareError):
    """
    Raised when attempting to register a username that already exists.
    """
    pass


class InvalidCredentialsError(LanShareError):
    """
    Raised when login credentials are invalid.
    """
    pass


class InvalidAPIKeyError(LanShareError):
    """
    Raised when an API key is missing, malformed or unknown.
    """
    pass
