"""JSON exporter for summarize results."""

from __future__ import annotations

import json
from typing import TextIO

from thread_summarizer.exporters.base import Exporter


class JsonExporter(Exporter):
    """Export summaries to JSON format."""

    @property
    def extension(self) -> str:
        """Return json extension."""
        return "json"

    def write(self, document: dict, stream: TextIO) -> None:
        json.dump(document, stream, indent=2, ensure_ascii=False)
        stream.write("\n")
