"""
Console output.
"""

import os
import sys
import threading

from .models import AltNameKind
from .output import format_fingerprint
from .scanner import ScanResult


class ConsoleOutput:
    """
    Handles human-readable console output.

    Thread-safe console output for concurrent scanning operations.
    """

    def __init__(self, quiet: bool = False, use_colors: bool = True):
        """
        Initialize console output handler.

        Args:
            quiet: Suppress certificate summaries
            use_colors: Use ANSI color codes (if terminal supports)
        """
        self.quiet = quiet
        self.use_colors = use_colors and self._supports_color()
        self._lock = threading.Lock()

    @staticmethod
    def _supports_color() -> bool:
        """Check if terminal supports ANSI colors."""
        if not hasattr(sys.stdout, "isatty") or not sys.stdout.isatty():
            return False

        term = os.environ.get("TERM", "")
        if term in ("dumb", ""):
            return False

        return True

    def _colorize(self, text: str, color_code: str) -> str:
        if not self.use_colors:
            return text
        return f"\033[{color_code}m{text}\033[0m"

    def success(self, message: str) -> None:
        """Print success message in green."""
        with self._lock:
            print(self._colorize(message, "32"))

    def error(self, message: str) -> None:
        """Print error message in red."""
        with self._lock:
            print(self._colorize(message, "31"), file=sys.stderr)

    def warning(self, message: str) -> None:
        """Print warning message in yellow."""
        with self._lock:
            print(self._colorize(message, "33"))

    def info(self, message: str) -> None:
        """Print info message."""
        with self._lock:
            print(message)

    def print_certificate(self, result: ScanResult) -> None:
        """
        Print a summary of a scanned certificate.

        Args:
            result: Scan result; failures are printed as errors
        """
        if self.quiet:
            return

        label = f"[{result.host}:{result.port}]"
        if result.certificate is None:
            self.error(f"{label} {result.status}: {result.error} ({result.error_code})")
            return

        cert = result.certificate
        lines = [self._colorize(f"{label} {result.tls_version or 'TLS'}", "36")]
        lines.append(f"  Subject:    {cert.subject.common_name or '-'}")
        lines.append(f"  Issuer:     {cert.issuer.common_name or '-'}")
        lines.append(f"  Serial:     {cert.serial}")
        lines.append(f"  Not before: {cert.not_before}")
        lines.append(f"  Not after:  {cert.not_after}")
        for kind in AltNameKind:
            names = cert.names_of_kind(kind)
            if names:
                values = ", ".join(name.display_value() for name in names)
                lines.append(f"  {kind.name + ':':<11} {values}")
        for algorithm, digest in result.fingerprints.items():
            lines.append(f"  {algorithm.upper() + ':':<11} {format_fingerprint(digest)}")

        with self._lock:
            print("\n".join(lines))
