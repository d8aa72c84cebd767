"""Custom exceptions for the DocTracker notifier."""


class DocTrackerError(Exception):
    """Base exception for all DocTracker notifier errors."""


class ConfigurationError(DocTrackerError):
    """Exception raised for configuration related errors."""


class AuthenticationError(DocTrackerError):
    """Exception raised when the mail provider rejects our credentials."""


class UnauthorizedError(DocTrackerError):
    """Exception raised when a run trigger presents a missing or wrong secret."""


class DataAccessError(DocTrackerError):
    """Exception raised when the document or user store cannot be read."""


class DeliveryError(DocTrackerError):
    """Exception raised when a single notification cannot be delivered."""


class ValidationError(DocTrackerError):
    """Exception raised for data validation errors."""
