"""Application exception classes."""


class ConfigError(Exception):
    """Raised when configuration is invalid or incomplete."""


class WeatherProviderError(Exception):
    """Raised when an Open-Meteo request fails or returns an unusable body."""


class WeatherDecodeError(WeatherProviderError):
    """Raised when a forecast payload does not match the expected shape."""


class PollerAbortedError(Exception):
    """Raised out of the poll loop when a failed cycle must stop the process."""
