"""Exceptions raised for structurally invalid engine input."""


class ValidationEngineError(ValueError):
    """Base class for engine errors."""


class InvalidDatasetError(ValidationEngineError):
    """Sheet data is not an array of rows."""


class DictionaryFormatError(ValidationEngineError):
    """Data dictionary document has an unexpected shape."""
