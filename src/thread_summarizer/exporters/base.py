"""Base exporter interface for summarize results."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Iterable, TextIO

if TYPE_CHECKING:
    from thread_summarizer.service import SummarizeResult


class Exporter(ABC):
    """Base class for summary exporters."""

    @property
    @abstractmethod
    def extension(self) -> str:
        """File extension without dot (e.g., 'json', 'yaml')."""
        ...

    @abstractmethod
    def write(self, document: dict, stream: TextIO) -> None:
        """Serialize an export document to an open text stream."""
        ...

    def export(self, results: Iterable[SummarizeResult], stream: TextIO) -> int:
        """Export results to a stream.

        Args:
            results: Summarize results to export.
            stream: Writable text stream (file or stdout).

        Returns:
            Number of results exported.
        """
        data = [self.result_to_dict(result) for result in results]
        self.write({"results": data, "count": len(data)}, stream)
        return len(data)

    @staticmethod
    def result_to_dict(result: SummarizeResult) -> dict:
        """Convert a summarize result to an exportable dictionary.

        Args:
            result: The result to convert.

        Returns:
            Dictionary in the camelCase wire shape.
        """
        return result.to_dict()
