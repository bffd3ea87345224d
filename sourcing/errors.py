class SourcingError(Exception):
    """Base class for pipeline errors."""


class RateLimitedError(SourcingError):
    """An upstream service reported a quota / rate limit condition."""


class MalformedResponseError(SourcingError):
    """A structured-output completion could not be parsed into the expected shape."""


class StoreError(SourcingError):
    """The relational or vector store rejected a write."""
