"""Redis Inspect tools for key listing, inspection, export and import."""

from .scanner import KeyScanner, ScanError
from .inspector import KeyInspector
from .exporter import KeyExporter
from .importer import KeyImporter

__all__ = ["KeyScanner", "ScanError", "KeyInspector", "KeyExporter", "KeyImporter"]
