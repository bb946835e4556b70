from __future__ import annotations


class TransferError(Exception):
    """Base class for failures that end a single transfer."""


class DecodeError(TransferError):
    """Short read or malformed field while decoding a frame."""


class IntegrityError(TransferError):
    """The received digest does not match the payload."""


class ClassificationError(TransferError):
    """The file name does not map to any storage category."""


class DirectoryError(TransferError):
    """The target category directory could not be created."""


class TransferRejected(TransferError):
    """The receiver answered with a failure status byte."""


class ConfigError(Exception):
    pass
