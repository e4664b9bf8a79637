"""Custom exceptions for GridPress."""


class GridPressError(Exception):
    """Base exception for all GridPress errors."""

    pass


class ConfigurationError(GridPressError):
    """Raised when configuration is invalid."""

    pass


class UnsupportedStrategyError(ConfigurationError):
    """Raised when a compression strategy is unknown or not implemented."""

    pass


class ValidationError(GridPressError):
    """Raised when input validation fails."""

    pass


class PipelineError(GridPressError):
    """Raised when a compression pipeline cannot be constructed."""

    pass


class CompressionCancelledError(GridPressError):
    """Raised when a compression run is cancelled between worksheets or steps."""

    pass
