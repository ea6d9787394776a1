"""
Exception hierarchy for the UpPage publisher.
"""


class UpPageError(Exception):
    """Base class for all UpPage errors."""
    pass


class ConfigError(UpPageError):
    """Required input is missing or invalid."""
    pass


class NotFoundError(UpPageError):
    """The local directory to publish does not exist."""
    pass


class AccessError(UpPageError):
    """Permission denied while reading the local tree."""
    pass


class RemoteListError(UpPageError):
    """The bucket listing could not be fetched completely."""
    pass


class TransferError(UpPageError):
    """An upload or delete failed after all retries."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class LifecycleError(UpPageError):
    """A bucket create/configure/delete call failed."""
    pass
