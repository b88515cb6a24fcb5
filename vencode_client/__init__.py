"""
Vencode Client Package

A Python client library for the Vencode video encoding service: job
submission, job status, and real-time progress events.
"""

__version__ = "0.3.0"

from .builder import JobBuilder
from .client import VencodeClient
from .config import Access, ClientConfig, StorageCredentials
from .exceptions import (
    APIError,
    AuthenticationError,
    ConnectionFailedError,
    NotFoundError,
    RateLimitError,
    ServerError,
    SubscriptionError,
    VencodeError,
)
from .models import ALL_JOBS, Job, JobStatus, Output
from .registry import CloseReason, Subscription, SubscriptionState
from .storage import S3Storage
from .subscriptions import SubscriptionManager

__all__ = [
    "VencodeClient",
    "ClientConfig",
    "Access",
    "StorageCredentials",
    "JobBuilder",
    "Job",
    "JobStatus",
    "Output",
    "ALL_JOBS",
    "Subscription",
    "SubscriptionState",
    "CloseReason",
    "SubscriptionManager",
    "S3Storage",
    "VencodeError",
    "APIError",
    "AuthenticationError",
    "NotFoundError",
    "RateLimitError",
    "ServerError",
    "ConnectionFailedError",
    "SubscriptionError",
]
