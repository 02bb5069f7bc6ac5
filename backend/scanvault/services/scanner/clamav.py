"""ClamAV via the clamscan command line.

clamscan writes one line per scanned file::

    <path>: OK
    <path>: <signature> FOUND

and exits 0 (clean), 1 (virus found) or 2 (error). A zero exit is always
clean. A non-zero exit is infected when stdout carries the FOUND marker and
an error otherwise; the signature is the text between the last ": " of a
FOUND line and the marker.

With scanner_use_wsl the binary runs inside WSL, so Windows drive paths are
rewritten to their /mnt/<drive>/ mount point before being handed over.
"""
import asyncio
import logging
import os
import re
import shlex
import signal
from dataclasses import dataclass
from pathlib import Path, PureWindowsPath

from scanvault.core.config import get_settings
from scanvault.db.models import SCAN_CLEAN, SCAN_ERROR, SCAN_INFECTED
from scanvault.services.scanner.base import Scanner, ScannerProbe, ScannerUnavailable, ScanVerdict

logger = logging.getLogger(__name__)

FOUND_MARKER = "FOUND"
NO_OUTPUT = "No scan output"
KILL_GRACE_SECONDS = 2.0
_DETECTION_LINE = re.compile(r"^(?P<path>.*): (?P<signature>.+?) FOUND[ \t\r]*$", re.MULTILINE)


@dataclass(frozen=True)
class ProcessResult:
    returncode: int
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out

    @property
    def error_message(self) -> str:
        if self.timed_out:
            return "Scan error: scanner timed out"
        return f"Scan error: command exited with status {self.returncode}"


def parse_signature(output: str) -> str | None:
    """First detected signature name in clamscan output, or None."""
    match = _DETECTION_LINE.search(output or "")
    if not match:
        return None
    return match.group("signature").strip() or None


def to_scanner_path(path: str | os.PathLike, use_wsl: bool) -> str:
    """OS-native path -> path as seen by the scanner process."""
    if not use_wsl:
        return os.path.abspath(path)
    win = PureWindowsPath(path)
    if len(win.drive) != 2 or win.drive[1] != ":":
        # Not a drive path (already POSIX, or UNC): nothing to rewrite
        return Path(path).as_posix()
    rest = "/".join(win.parts[1:])
    return f"/mnt/{win.drive[0].lower()}/{rest}"


def interpret_result(result: ProcessResult, version: str | None) -> ScanVerdict:
    scan_log = result.stdout or result.stderr or NO_OUTPUT
    if result.ok:
        return ScanVerdict(SCAN_CLEAN, None, scan_log, version)
    if FOUND_MARKER in result.stdout:
        return ScanVerdict(SCAN_INFECTED, parse_signature(result.stdout), scan_log, version)
    message = result.error_message
    detail = result.stderr.strip()
    if result.stdout and detail:
        # stderr is not already the log body
        message = f"{message}: {detail}"
    return ScanVerdict(SCAN_ERROR, None, f"{message}\n{scan_log}", version)


class ClamAVScanner(Scanner):

    def __init__(
        self,
        command: str | None = None,
        use_wsl: bool | None = None,
        timeout: float | None = None,
        probe_timeout: float | None = None,
    ) -> None:
        settings = get_settings()
        self._command = shlex.split(command or settings.scanner_command)
        self._use_wsl = settings.scanner_use_wsl if use_wsl is None else use_wsl
        self._timeout = timeout if timeout is not None else settings.scanner_timeout_seconds
        self._probe_timeout = probe_timeout if probe_timeout is not None else settings.scanner_probe_timeout_seconds

    def _argv(self, *args: str) -> list[str]:
        prefix = ["wsl"] if self._use_wsl else []
        return [*prefix, *self._command, *args]

    async def _run(self, argv: list[str], timeout: float) -> ProcessResult:
        """Run argv to completion. OSError (missing binary, permissions) propagates."""
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            start_new_session=True,
        )
        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout)
        except asyncio.TimeoutError:
            logger.warning("Scanner command timed out after %ss: %s", timeout, argv[0])
            await self._kill(proc)
            return ProcessResult(returncode=proc.returncode or -1, stdout="", stderr="", timed_out=True)
        return ProcessResult(
            returncode=proc.returncode,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )

    @staticmethod
    async def _kill(proc: asyncio.subprocess.Process) -> None:
        """Kill the whole process group: wrappers (wsl, shell scripts) leave clamscan as a grandchild."""
        try:
            if hasattr(os, "killpg"):
                os.killpg(proc.pid, signal.SIGKILL)
            else:
                proc.kill()
        except ProcessLookupError:
            logger.debug("Scanner process %s exited before kill", proc.pid)
        try:
            await asyncio.wait_for(proc.communicate(), KILL_GRACE_SECONDS)
        except asyncio.TimeoutError:
            logger.error("Scanner process %s did not exit after kill", proc.pid)

    async def probe(self) -> ScannerProbe:
        try:
            result = await self._run(self._argv("-V"), self._probe_timeout)
        except OSError as e:
            logger.warning("Scanner not available: %s", e)
            return ScannerProbe(available=False)
        version = result.stdout.strip()
        if not result.ok or not version:
            logger.warning("Scanner version query failed (exit %s)", result.returncode)
            return ScannerProbe(available=False)
        return ScannerProbe(available=True, version=version)

    async def scan(self, path: Path, version: str | None = None) -> ScanVerdict:
        argv = self._argv("--no-summary", to_scanner_path(path, self._use_wsl))
        try:
            result = await self._run(argv, self._timeout)
        except OSError as e:
            raise ScannerUnavailable(str(e)) from e
        return interpret_result(result, version)
