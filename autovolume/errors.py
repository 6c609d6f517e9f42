class AutoVolumeError(Exception):
    """Base error for the auto-volume bot."""


class ConfigError(AutoVolumeError):
    pass


class QuoteError(AutoVolumeError):
    pass


class SwapBuildError(AutoVolumeError):
    pass


class TransactionError(AutoVolumeError):
    """Submission or confirmation of a signed transaction failed."""


class UnconfirmedTransactionError(TransactionError):
    """Sent, but no status was seen before the confirmation wait ended."""
