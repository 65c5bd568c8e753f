"""Custom exceptions for httpbackup."""


class HttpBackupError(Exception):
    """Base exception for httpbackup."""


class ConfigError(HttpBackupError):
    """Raised when the config file is missing, unreadable, or malformed."""
