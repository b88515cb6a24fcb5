"""
Fluent builder for encoding job specifications.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

from .models import Job, Output

if TYPE_CHECKING:
    from .client import VencodeClient

DEFAULT_FORMAT = "mp4"


@dataclass
class _ResolutionSet:
    res: List[str]
    format: Optional[str] = None


class JobBuilder:
    """
    Builds a job specification step by step.

    Example:
        job = (
            client.job()
            .with_input("https://example.com/video.mov")
            .to_resolutions(["1080p", "video-1080", "720p", "video-720"])
            .notify("https://example.com/hooks/vencode")
            .run()
        )
    """

    def __init__(self, client: Optional["VencodeClient"] = None):
        self.client = client
        self.input_path: Optional[str] = None
        self.outputs: List[Dict[str, Any]] = []
        self.notify_url: Optional[str] = None
        self.format: Optional[str] = None
        self.thumbnails: List[Dict[str, Any]] = []
        self.resolutions: List[_ResolutionSet] = []

    def with_input(self, url: str) -> "JobBuilder":
        self.input_path = url
        return self

    def add_output(self, output: Union[Output, Dict[str, Any]]) -> "JobBuilder":
        self.outputs.append(output.to_dict() if isinstance(output, Output) else dict(output))
        return self

    def to_format(self, format: str) -> "JobBuilder":
        self.format = format
        return self

    def take_thumbnails(self, thumbnails: List[Dict[str, Any]]) -> "JobBuilder":
        self.thumbnails = list(thumbnails)
        return self

    def to_resolutions(self, res: List[str], format: Optional[str] = None) -> "JobBuilder":
        """
        Request several renditions at once.

        Args:
            res: Flat list alternating resolution and output key,
                e.g. ["1080p", "out-1080", "720p", "out-720"]
            format: Container for these renditions (falls back to the
                builder format, then mp4)
        """
        self.resolutions.append(_ResolutionSet(list(res), format))
        return self

    def notify(self, webhook_url: str) -> "JobBuilder":
        self.notify_url = webhook_url
        return self

    def _expand_resolutions(self) -> List[Dict[str, Any]]:
        outputs = []
        for entry in self.resolutions:
            for i in range(0, len(entry.res), 2):
                key = entry.res[i + 1] if i + 1 < len(entry.res) else None
                outputs.append(Output(
                    key=key,
                    res=entry.res[i],
                    format=entry.format or self.format or DEFAULT_FORMAT,
                ).to_dict())
        return outputs

    def to_json(self) -> Dict[str, Any]:
        """Return the job specification as submitted to the API."""
        spec = {
            "input": {"path": self.input_path},
            "outputs": self.outputs + self._expand_resolutions(),
            "thumbnails": self.thumbnails,
        }
        if self.notify_url:
            spec["notify"] = {"webhookUrl": self.notify_url}
        return spec

    def run(self) -> Job:
        """Submit the job through the bound client."""
        if self.client is None:
            raise RuntimeError("JobBuilder is not bound to a client")
        if not self.input_path:
            raise ValueError("Job input is not set; call with_input() first")
        return self.client.encode(self.to_json())
