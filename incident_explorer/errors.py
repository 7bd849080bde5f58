"""
Exceptions raised by the incident explorer.
"""


class ExplorerError(Exception):
    pass


class ConfigError(ExplorerError):
    """The connection properties file is missing or incomplete."""


class DataAccessError(ExplorerError):
    """
    Connecting, preparing or executing a statement failed.

    `cause` keeps the original driver/SQLAlchemy exception; the message is the
    driver's own message so it can be shown to the analyst as-is.
    """

    def __init__(self, message, cause=None):
        super().__init__(message)
        self.cause = cause


class InvalidInputError(ExplorerError):
    """A report argument (top-N count, date window) is unusable; the report is skipped."""
