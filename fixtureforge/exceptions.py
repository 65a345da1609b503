"""
FixtureForge Custom Exceptions

This module defines custom exception classes used throughout FixtureForge.
"""


class DatabaseTesterError(Exception):
    """Base exception for all FixtureForge errors."""
    pass


class ConfigurationError(DatabaseTesterError):
    """Raised when configuration is missing or invalid."""
    pass


class DataSourceNotFoundError(ConfigurationError):
    """Raised when no data source is registered under the requested name."""
    pass


class DataSetLoadError(DatabaseTesterError):
    """Raised when a dataset directory or file cannot be read."""
    pass


class DatabaseOperationError(DatabaseTesterError):
    """
    Raised when a mutating SQL statement fails.

    Attributes:
        sql: The statement that failed, if known
    """
    def __init__(self, message: str, sql: str = None):
        self.sql = sql
        super().__init__(message)


class ValidationError(DatabaseTesterError, AssertionError):
    """
    Raised when the live database does not match the expected dataset.

    Attributes:
        result: The ComparisonResult holding every collected difference
    """
    def __init__(self, message: str, result=None):
        self.result = result
        super().__init__(message)
