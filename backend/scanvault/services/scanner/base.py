"""Scanner interface and verdict types. Implementations: ClamAV (clamscan subprocess)."""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from scanvault.db.models import SCAN_CLEAN

MOCK_SCAN_LOG = "ClamAV not available - mock scan performed (file marked as clean)"
MOCK_SCANNER_VERSION = "Mock Scanner v1.0"


class ScannerUnavailable(Exception):
    """The scanner process could not be started. Callers fall back to mock_verdict()."""


@dataclass(frozen=True)
class ScannerProbe:
    available: bool
    version: str | None = None


@dataclass(frozen=True)
class ScanVerdict:
    status: str  # clean | infected | error
    virus_name: str | None
    scan_log: str
    scanner_version: str | None


def mock_verdict() -> ScanVerdict:
    """Deterministic verdict used when no scanner is installed, so uploads never block on it."""
    return ScanVerdict(
        status=SCAN_CLEAN,
        virus_name=None,
        scan_log=MOCK_SCAN_LOG,
        scanner_version=MOCK_SCANNER_VERSION,
    )


class Scanner(ABC):

    @abstractmethod
    async def probe(self) -> ScannerProbe:
        """Cheap availability check (version query). Never raises."""
        ...

    @abstractmethod
    async def scan(self, path: Path, version: str | None = None) -> ScanVerdict:
        """Scan an OS-native path. Raise ScannerUnavailable if the scanner cannot be invoked."""
        ...
