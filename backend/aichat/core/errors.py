"""
errors.py — Exceptions raised by the provider brokers.

Routes don't catch these individually: main.py registers an exception
handler that turns a ProviderError into {"message": ...} with the error's
status_code, the same JSON shape every other error response uses.
"""


class ProviderError(Exception):
    """
    An external AI provider could not produce a result.

    provider    – short name of the backend ("openai", "gemini", "huggingface", ...)
    message     – user-facing explanation (safe to show in the chat UI)
    status_code – HTTP status the API should answer with
    """

    def __init__(self, provider: str, message: str, status_code: int = 502):
        super().__init__(message)
        self.provider = provider
        self.message = message
        self.status_code = status_code

    def __repr__(self) -> str:
        return f"<ProviderError {self.provider} {self.status_code}: {self.message}>"


class ProviderNotConfigured(ProviderError):
    """The provider's credentials are missing, so it was never called."""

    def __init__(self, provider: str, message: str | None = None):
        super().__init__(
            provider,
            message or f"The {provider} provider is not configured.",
            status_code=503,
        )
