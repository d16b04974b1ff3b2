"""Error taxonomy shared by collectors, the quote pipeline and storage."""


class MarketLensError(Exception):
    """Base class for marketlens errors."""


class TransientFetchError(MarketLensError):
    """Network or rate-limit failure that persisted after every retry.

    Attributes:
        status_code: Last HTTP status received, if any.
        last_exception: Last transport exception raised, if any.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        last_exception: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.last_exception = last_exception


class PermanentFetchError(MarketLensError):
    """Malformed response or unknown instrument. Never retried."""


class ComputationSkip(MarketLensError):
    """Not enough history to compute a value.

    Indicator functions leave the field null instead of raising this; it is
    raised only where a value is required, e.g. a row from an empty history.
    """


class PersistenceFailure(MarketLensError):
    """A computed row was rejected by the storage layer."""
