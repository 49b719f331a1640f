"""Domain-specific errors for hygroscan."""


class HygroscanError(Exception):
    """Base error for hygroscan."""


class DecodeError(HygroscanError):
    """Base error for advertisement payloads that cannot be decoded."""


class MalformedPayloadError(DecodeError):
    """Raised when a payload is too short for its declared structure."""


class UnknownEventTypeError(DecodeError):
    """Raised when an event record has an unknown type or an unexpected length."""


class AdapterError(HygroscanError):
    """Raised or reported when the radio adapter itself fails."""


class ScannerStateError(HygroscanError):
    """Raised when a scan controller is used outside its lifecycle."""


class ProductValidationError(HygroscanError):
    """Raised when a product file does not conform to schema or semantics."""


class ProductLoadError(HygroscanError):
    """Raised when loading product sources fails."""
