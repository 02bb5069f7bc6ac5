"""Upload, malware-scan and scanned-file catalog service."""

__version__ = "0.1.0"
