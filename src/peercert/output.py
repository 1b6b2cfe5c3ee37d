"""
Output formatting and JSON export.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Union

from . import __version__

if TYPE_CHECKING:
    from .scanner import ScanResult


def format_fingerprint(digest: Union[bytes, bytearray, str]) -> str:
    """
    Render a digest as colon-separated upper-case hex.

    Examples:
        b"\\x01\\xab" -> "01:AB"
        "01ab" -> "01:AB"
    """
    raw = bytes.fromhex(digest) if isinstance(digest, str) else bytes(digest)
    return ":".join(f"{octet:02X}" for octet in raw)


class OutputFormatter:
    """Formats certificate scan results and writes them as JSON."""

    def __init__(self, output_path: str):
        """
        Initialize output formatter.

        Args:
            output_path: Path to output file
        """
        self.output_path = Path(output_path)

    def create_output(
        self,
        results: List["ScanResult"],
        parameters: Dict[str, Any],
        statistics: Dict[str, Any],
    ) -> Dict[str, Any]:
        """
        Create structured output dictionary.

        Args:
            results: Scan results
            parameters: Scan parameters used
            statistics: Scan statistics

        Returns:
            Complete output structure
        """
        return {
            "metadata": {
                "version": __version__,
                "scan_timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
                "parameters": parameters,
                "statistics": statistics,
            },
            "results": [result.to_dict() for result in results],
        }

    def write_json(self, data: Dict[str, Any]) -> None:
        """
        Write data to JSON file atomically.

        Args:
            data: Data to write
        """
        self.output_path.parent.mkdir(parents=True, exist_ok=True)

        # Write to temporary file first (atomic write)
        temp_path = self.output_path.with_suffix(".tmp")

        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)

            temp_path.replace(self.output_path)
            self.output_path.chmod(0o600)

        except OSError as e:
            if temp_path.exists():
                temp_path.unlink()
            raise IOError(f"Failed to write output file: {e}") from e

    @staticmethod
    def write_stdout(data: Dict[str, Any]) -> None:
        """
        Write data to stdout.

        Args:
            data: Data to write
        """
        print(json.dumps(data, indent=2, ensure_ascii=False))
