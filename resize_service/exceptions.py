"""Domain errors raised by the resize pipeline and cache."""


class ResizeServiceError(Exception):
    """Base class for resize service errors."""


class SourceFetchError(ResizeServiceError):
    """Remote source unreachable, non-2xx, oversized or timed out."""


class DecodeError(ResizeServiceError):
    """Input bytes are not a recognizable or intact image."""


class ProcessingError(ResizeServiceError):
    """Resize or encode failed, e.g. invalid target dimensions."""


class CacheInvariantViolation(ResizeServiceError):
    """Internal cache accounting went inconsistent. Indicates a bug."""
