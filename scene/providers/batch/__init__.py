"""Batch image providers usable by the client-side resolver."""

from scene.providers.batch.http_batch_provider import HttpBatchImageProvider

__all__ = ["HttpBatchImageProvider"]
