"""Exception types shared across the content hub."""


class ContentHubError(Exception):
    """Base class for all content hub errors."""


class SourceError(ContentHubError):
    """An external source could not be fetched or parsed.

    Raised by source adapters and absorbed by the snapshot cache, which
    keeps serving the previous snapshot.
    """

    def __init__(self, source: str, message: str):
        self.source = source
        super().__init__(f"{source}: {message}")


class ValidationError(ContentHubError):
    """Caller input is malformed or a required parameter is missing."""


class ConfigurationError(ContentHubError):
    """A domain's configuration is invalid; that domain stays disabled."""
