"""Summary exporters for JSON and YAML formats."""

from thread_summarizer.exporters.base import Exporter
from thread_summarizer.exporters.json_exporter import JsonExporter
from thread_summarizer.exporters.yaml_exporter import YamlExporter

EXPORTERS = {
    "json": JsonExporter,
    "yaml": YamlExporter,
}

__all__ = [
    "EXPORTERS",
    "Exporter",
    "JsonExporter",
    "YamlExporter",
]
