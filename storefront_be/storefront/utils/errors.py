class StorefrontError(Exception):
    """Base class for domain errors raised by the service layer."""


class SlugConflictError(StorefrontError):
    def __init__(self, base_slug: str, attempts: int):
        super().__init__(f"Could not find a free slug for '{base_slug}' after {attempts} attempts")
        self.base_slug = base_slug
        self.attempts = attempts


class TransactionTimeout(StorefrontError):
    def __init__(self, elapsed_ms: float, limit_ms: int):
        super().__init__(f"Transaction took {elapsed_ms:.0f}ms (limit {limit_ms}ms)")
        self.elapsed_ms = elapsed_ms
        self.limit_ms = limit_ms
