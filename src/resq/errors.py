"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Error taxonomy for the offline-resilience worker.
"""

from __future__ import annotations


class ResqError(RuntimeError):
    """Base error for all worker failures."""


class ProvisioningError(ResqError):
    """
    Raised when a new cache generation could not be fully populated.

    The previously active generation, if any, keeps serving.
    """

    def __init__(self, tag: str, failed_urls: list[str], message: str | None = None) -> None:
        self.tag = tag
        self.failed_urls = list(failed_urls)
        super().__init__(
            message
            or f"Provisioning of generation '{tag}' failed for: {', '.join(failed_urls)}"
        )


class FetchError(ResqError):
    """Raised by fetchers when the network could not produce any response."""


class FetchTimeoutError(FetchError):
    """Raised when a fetch exceeds the caller-configured timeout."""


class SubmissionError(ResqError):
    """Raised by submitters when a record could not be delivered."""


class NotificationDeliveryError(ResqError):
    """Raised by notifiers when a notification could not be shown."""


class CacheStoreError(ResqError):
    """Raised for cache store persistence failures."""


class GenerationNotFoundError(CacheStoreError):
    """Raised when writing into a generation that does not exist."""


class WorkerError(ResqError):
    """Raised for invalid worker setup or usage."""
