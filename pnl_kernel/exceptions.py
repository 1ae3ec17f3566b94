"""
Typed exception hierarchy for the P&L ingestion pipeline.

Every error has a typed class, a class-level machine-readable ``code``, and
structured attributes, so callers catch by type and report by code instead of
parsing messages.

    PnlError (base)
    |
    +-- FormatError            file violates the minimum structural layout
    +-- ValidationError        one assembled record fails field constraints
    +-- NotFoundError
    |   +-- VersionNotFoundError
    |   +-- UploadNotFoundError
    +-- PersistenceError       snapshot or upsert failed in storage
    +-- BatchFatalError        anything outside per-file/per-record handling
    +-- UploadStateError       upload not in the status an operation needs

Scope of each error:

    FormatError       -> fatal to that file only; recorded on the upload
    ValidationError   -> recorded per record; batch continues
    PersistenceError  -> recorded per record; batch continues
    NotFoundError     -> surfaced to the caller of that operation
    BatchFatalError   -> aborts the run; upload status becomes ``failed``
"""


class PnlError(Exception):
    """Base exception for all P&L pipeline errors."""

    code: str = "PNL_ERROR"


class FormatError(PnlError):
    """Source file does not have the minimum expected structure."""

    code: str = "FORMAT_ERROR"

    def __init__(self, filename: str, reason: str):
        self.filename = filename
        self.reason = reason
        super().__init__(f"Invalid CSV format: {filename} ({reason})")


class ValidationError(PnlError):
    """An assembled record failed its field constraints."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, record_key: str, errors: tuple[str, ...]):
        self.record_key = record_key
        self.errors = errors
        super().__init__("; ".join(errors))


class NotFoundError(PnlError):
    """Base for lookups whose key does not exist."""

    code: str = "NOT_FOUND"


class VersionNotFoundError(NotFoundError):
    """DataVersion with given ID was not found."""

    code: str = "VERSION_NOT_FOUND"

    def __init__(self, version_id: str):
        self.version_id = version_id
        super().__init__(f"Version not found: {version_id}")


class UploadNotFoundError(NotFoundError):
    """UploadHistory with given ID was not found."""

    code: str = "UPLOAD_NOT_FOUND"

    def __init__(self, upload_id: str):
        self.upload_id = upload_id
        super().__init__(f"Upload not found: {upload_id}")


class PersistenceError(PnlError):
    """A snapshot or upsert failed against the database."""

    code: str = "PERSISTENCE_ERROR"

    def __init__(self, operation: str, key: str, reason: str):
        self.operation = operation
        self.key = key
        self.reason = reason
        super().__init__(f"{operation} failed for {key}: {reason}")


class BatchFatalError(PnlError):
    """An upload run was aborted by an error outside per-file/per-record handling."""

    code: str = "BATCH_FATAL"

    def __init__(self, upload_id: str, reason: str):
        self.upload_id = upload_id
        self.reason = reason
        super().__init__(f"Upload {upload_id} failed: {reason}")


class UploadStateError(PnlError):
    """An upload is not in the status an operation requires."""

    code: str = "UPLOAD_STATE"

    def __init__(self, upload_id: str, status: str, expected: str):
        self.upload_id = upload_id
        self.status = status
        self.expected = expected
        super().__init__(f"Upload {upload_id} is {status}, expected {expected}")
