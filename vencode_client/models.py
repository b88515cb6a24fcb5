"""
Data models for the Vencode client.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

ALL_JOBS = "all"


def is_all_jobs(topic: str) -> bool:
    """True if ``topic`` is the "all jobs" sentinel (case-insensitive)."""
    return isinstance(topic, str) and topic.lower() == ALL_JOBS


def topics_match(left: str, right: str) -> bool:
    """Compare two topics; the sentinel compares case-insensitively, job ids exactly."""
    if is_all_jobs(left) or is_all_jobs(right):
        return is_all_jobs(left) and is_all_jobs(right)
    return left == right


class JobStatus(Enum):
    """Status of an encoding job."""
    PENDING = "pending"
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            lowered = value.lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return cls.UNKNOWN


@dataclass
class Job:
    """An encoding job as reported by the service."""
    id: str
    status: JobStatus
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Job":
        """Build a Job from a response body, keeping the full body in ``raw``."""
        job_id = data.get("id") or data.get("_id") or data.get("jobId") or ""
        return cls(
            id=str(job_id),
            status=JobStatus(data.get("status", "unknown")),
            raw=data,
        )

    @property
    def progress(self) -> Optional[float]:
        """Reported progress, when the service includes one."""
        value = self.raw.get("progress")
        try:
            return float(value) if value is not None else None
        except (TypeError, ValueError):
            return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert job to dictionary representation."""
        data = dict(self.raw)
        data["id"] = self.id
        data["status"] = self.status.value
        return data


@dataclass
class Output:
    """A single rendition requested from the encoder."""
    key: str
    res: str
    format: str = "mp4"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "encode": {
                "format": self.format,
                "res": self.res,
            },
        }


@dataclass
class ServerSentEvent:
    """One event read from an event stream."""
    data: Optional[str] = None
    event: str = "message"
    id: Optional[str] = None
    retry: Optional[int] = None
