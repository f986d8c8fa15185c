class ScanError(Exception):
    pass


class InputValidationError(ScanError):
    """Address is neither a BNB Chain nor a Solana address. No I/O attempted."""


class ProviderUnavailable(ScanError):
    """An enrichment provider failed. Never escapes a fetcher boundary."""

    def __init__(self, provider: str, reason: str) -> None:
        super().__init__(f"{provider}: {reason}")
        self.provider = provider
        self.reason = reason


class PrimaryDataUnavailable(ScanError):
    """Market-data provider failed entirely. The only provider error surfaced to callers."""


class ScrapeBackendError(ScanError):
    pass


class ScrapeExhausted(ScanError):
    """Every mirror failed or was rate limited."""


class CollaboratorError(ScanError):
    pass
