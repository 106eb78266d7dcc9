# Error types shared by the autoencoder core and the persistence boundary.
# I subclass the builtin families so callers that already catch ValueError/OSError keep working.


class AutoencoderError(Exception):
    """Base class for every error raised by sigae."""


class DimensionMismatch(AutoencoderError, ValueError):
    """An operand's shape does not fit the requested operation."""


class ShapeMismatch(AutoencoderError, ValueError):
    """Restored parameters disagree with the model's configured sizes."""


class StorageIOFailure(AutoencoderError, OSError):
    """Durable read or write of parameters failed."""
