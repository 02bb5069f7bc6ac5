"""Scanner factory. ClamAV's clamscan is the only engine; a missing binary degrades to mock_verdict()."""
from scanvault.services.scanner.base import (
    Scanner,
    ScannerProbe,
    ScannerUnavailable,
    ScanVerdict,
    mock_verdict,
)
from scanvault.services.scanner.clamav import ClamAVScanner

__all__ = [
    "Scanner",
    "ScannerProbe",
    "ScannerUnavailable",
    "ScanVerdict",
    "ClamAVScanner",
    "mock_verdict",
    "get_scanner",
]


def get_scanner() -> Scanner:
    return ClamAVScanner()
