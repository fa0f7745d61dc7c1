"""Error handling framework for autosub.

Provides custom exception types and helpers for standardized error handling.
Nothing in a resolution pass escalates to a crash: best-effort operations
log and swallow, configuration problems surface before any pass runs.
"""

import logging
from functools import wraps

logger = logging.getLogger(__name__)


# Custom Exception Hierarchy
class AutosubError(Exception):
    """Base exception for all autosub-specific errors."""

    pass


class ConfigurationError(AutosubError):
    """Configuration validation failed.

    Raised when a configuration file cannot be read or holds invalid values.
    """

    pass


class FetchError(AutosubError):
    """The external subtitle downloader could not be launched."""

    pass


# Error Handling Decorator
def handle_errors(
    *,
    error_types: tuple[type[Exception], ...],
    default_message: str,
    log_level: str = "error",
    reraise: bool = True,
    wrap_as: type[AutosubError] | None = None,
):
    """Decorator for standardized error handling.

    Args:
        error_types: Tuple of exception types to catch
        default_message: Message to log when error occurs
        log_level: Logging level (error, warning, info, debug)
        reraise: Whether to re-raise the exception after logging
        wrap_as: Optionally wrap the caught exception in an AutosubError subclass

    Example:
        @handle_errors(
            error_types=(OSError,),
            default_message="Could not create directory",
            log_level="warning",
            reraise=False,
        )
        def ensure_dir(path):
            ...
    """

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except error_types as e:
                log_func = getattr(logger, log_level)
                log_func(
                    f"{default_message}: {e}",
                    exc_info=(log_level == "error"),
                )
                if wrap_as:
                    raise wrap_as(f"{default_message}: {e}") from e
                if reraise:
                    raise
                return None

        return wrapper

    return decorator


# Context Manager for Error Handling
class error_context:
    """Context manager for error handling in specific code blocks.

    Example:
        with error_context(
            error_types=(FileNotFoundError, PermissionError),
            default_message="Failed to read file",
            wrap_as=ConfigurationError
        ):
            # ... code that might raise errors ...

    With ``suppress=True`` the matching exception is logged and swallowed.
    """

    def __init__(
        self,
        *,
        error_types: tuple[type[Exception], ...],
        default_message: str,
        log_level: str = "error",
        wrap_as: type[AutosubError] | None = None,
        suppress: bool = False,
    ):
        self.error_types = error_types
        self.default_message = default_message
        self.log_level = log_level
        self.wrap_as = wrap_as
        self.suppress = suppress

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None and issubclass(exc_type, self.error_types):
            log_func = getattr(logger, self.log_level)
            log_func(
                f"{self.default_message}: {exc_val}",
                exc_info=(self.log_level == "error"),
            )
            if self.wrap_as:
                raise self.wrap_as(f"{self.default_message}: {exc_val}") from exc_val
            return self.suppress
        return False  # Don't suppress other exceptions
