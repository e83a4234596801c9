"""Exceptions raised by the price collaborators."""


class PriceServiceError(Exception):
    """Base class for quote and price-history failures."""


class PriceFetchError(PriceServiceError):
    """Transport or upstream failure; callers treat it as missing data."""


class InvalidApiKeyError(PriceServiceError):
    """The quote backend rejected our credentials.

    Never swallowed: the caller must be able to tell bad configuration
    apart from an empty result.
    """

    def __init__(self, message: str = "Invalid API key."):
        super().__init__(message)
