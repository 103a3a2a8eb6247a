"""Error taxonomy for the upload pipeline.

Each error carries the HTTP status the API answers with, so routes can turn
any of them into an ``HTTPException`` without a lookup table.
"""


class PipelineError(Exception):
    status_code = 500


class BadRequestError(PipelineError):
    status_code = 400


class UnsupportedFormatError(BadRequestError):
    pass


class PayloadTooLargeError(PipelineError):
    status_code = 413


class ConflictError(PipelineError):
    status_code = 409


class NotFoundError(PipelineError):
    status_code = 404


class FileStorageError(PipelineError):
    """The storage backend failed to write or delete an object."""
    status_code = 502


class InternalError(PipelineError):
    status_code = 500
