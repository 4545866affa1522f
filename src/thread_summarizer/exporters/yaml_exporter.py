"""YAML exporter for summarize results."""

from __future__ import annotations

from typing import TextIO

import yaml

from thread_summarizer.exporters.base import Exporter


class YamlExporter(Exporter):
    """Export summaries to YAML format."""

    @property
    def extension(self) -> str:
        """Return yaml extension."""
        return "yaml"

    def write(self, document: dict, stream: TextIO) -> None:
        yaml.safe_dump(document, stream, allow_unicode=True, sort_keys=False)
