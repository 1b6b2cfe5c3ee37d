"""
Command-line interface for peercert.
"""

import argparse
import ipaddress
import sys
from typing import TYPE_CHECKING, List, Optional, Tuple

from . import __version__
from .fingerprint import FINGERPRINT_ALGORITHMS

if TYPE_CHECKING:
    from .console import ConsoleOutput


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        prog="peercert",
        description="Describe the X.509 certificates presented by TLS servers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Describe a single server certificate
  peercert example.com

  # Several targets with SHA-1 and SHA-256 fingerprints, written to a file
  peercert example.com:8443 [2001:db8::1]:443 --fingerprint sha1 --fingerprint sha256 -o certs.json

  # Short display fingerprints
  peercert example.com --fingerprint-length 8
        """,
    )

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    parser.add_argument(
        "targets",
        nargs="+",
        metavar="TARGET",
        help="host, host:port or [ipv6]:port",
    )

    # Output options
    parser.add_argument(
        "--output",
        "-o",
        metavar="FILE",
        help="Write JSON results to FILE instead of stdout",
    )

    # Connection options
    parser.add_argument(
        "--port",
        type=int,
        default=443,
        metavar="PORT",
        help="Port for targets without one (default: 443)",
    )
    parser.add_argument(
        "--sni",
        metavar="NAME",
        help="Server Name Indication to send (default: the target host name)",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=5,
        metavar="SEC",
        help="Connection timeout in seconds (default: 5)",
    )
    parser.add_argument(
        "--retry",
        type=int,
        default=3,
        metavar="NUM",
        help="Max retry attempts (default: 3)",
    )
    parser.add_argument(
        "--threads",
        type=int,
        default=10,
        metavar="NUM",
        help="Number of concurrent connections (default: 10)",
    )
    parser.add_argument(
        "--verify",
        action="store_true",
        help="Verify the certificate chain and hostname before describing it",
    )

    # Fingerprint options
    parser.add_argument(
        "--fingerprint",
        action="append",
        choices=sorted(FINGERPRINT_ALGORITHMS),
        metavar="ALGO",
        help="Fingerprint algorithm, may be repeated (default: sha256)",
    )
    parser.add_argument(
        "--fingerprint-length",
        type=int,
        metavar="BYTES",
        help="Truncate fingerprints to BYTES bytes",
    )

    # Logging options
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default="warning",
        help="Logging level (default: warning)",
    )
    parser.add_argument(
        "--log-file",
        metavar="FILE",
        help="Log output to file",
    )
    parser.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Suppress certificate summaries",
    )

    return parser


def validate_args(args: argparse.Namespace) -> Optional[str]:
    """
    Validate parsed arguments.

    Returns:
        Error message if validation fails, None otherwise.
    """
    if not 1 <= args.port <= 65535:
        return f"Invalid port: {args.port}. Must be between 1 and 65535."

    if args.threads < 1:
        return f"Invalid thread count: {args.threads}. Must be at least 1."

    if args.timeout < 1:
        return f"Invalid timeout: {args.timeout}. Must be at least 1 second."

    if args.retry < 0:
        return f"Invalid retry count: {args.retry}. Must be non-negative."

    if args.fingerprint_length is not None and args.fingerprint_length < 1:
        return (
            f"Invalid fingerprint length: {args.fingerprint_length}. "
            "Must be at least 1 byte."
        )

    for target in args.targets:
        try:
            parse_target(target, args.port)
        except ValueError as e:
            return str(e)

    return None


def _is_ip_literal(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


def parse_target(target: str, default_port: int) -> Tuple[str, int]:
    """
    Split a target into host and port.

    Examples:
        example.com -> ("example.com", default_port)
        example.com:8443 -> ("example.com", 8443)
        [2001:db8::1]:443 -> ("2001:db8::1", 443)
        2001:db8::1 -> ("2001:db8::1", default_port)

    Raises:
        ValueError: if the target is empty or the port is invalid
    """
    text = target.strip()
    port_text: Optional[str] = None

    if text.startswith("["):
        host, sep, rest = text[1:].partition("]")
        if not sep or (rest and not rest.startswith(":")):
            raise ValueError(f"Invalid target: {target}")
        port_text = rest[1:] if rest else None
    elif text.count(":") == 1:
        host, port_text = text.split(":")
    else:
        # Bare host name or unbracketed IPv6 address
        host = text

    if not host:
        raise ValueError(f"Invalid target: {target}")

    if port_text is None:
        return host, default_port
    if not port_text.isdigit() or not 1 <= int(port_text) <= 65535:
        raise ValueError(f"Invalid port in target: {target}")
    return host, int(port_text)


def build_targets(args: argparse.Namespace) -> List[Tuple[str, int, Optional[str]]]:
    """Build (host, port, sni) tuples; SNI defaults to the host unless it is an IP."""
    targets = []
    for target in args.targets:
        host, port = parse_target(target, args.port)
        sni = args.sni or (None if _is_ip_literal(host) else host)
        targets.append((host, port, sni))
    return targets


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Returns:
        Exit code (0 when every target succeeded, non-zero otherwise).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    error = validate_args(args)
    if error:
        print(f"Error: {error}", file=sys.stderr)
        return 1

    # Set up logging
    import logging

    from .console import ConsoleOutput

    log_level = getattr(logging, args.log_level.upper())
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        filename=args.log_file if args.log_file else None,
    )

    console = ConsoleOutput(quiet=args.quiet)

    try:
        import asyncio

        return asyncio.run(run_scan(args, console))
    except KeyboardInterrupt:
        console.error("\nScan interrupted by user")
        return 130
    except Exception as e:
        console.error(f"Fatal error: {e}")
        logging.exception("Fatal error during scan")
        return 1


async def run_scan(args: argparse.Namespace, console: "ConsoleOutput") -> int:
    """
    Scan all targets and report the results.

    Args:
        args: Parsed command-line arguments
        console: Console output handler

    Returns:
        Exit code
    """
    import logging
    import time

    from .output import OutputFormatter
    from .scanner import CertScanner

    logger = logging.getLogger(__name__)

    algorithms = args.fingerprint or ["sha256"]
    scanner = CertScanner(
        timeout=args.timeout,
        retry_count=args.retry,
        port=args.port,
        verify=args.verify,
        fingerprint_algorithms=algorithms,
        fingerprint_length=args.fingerprint_length,
    )

    targets = build_targets(args)
    start_time = time.time()
    results = await scanner.scan_multiple(targets, concurrency=args.threads)
    elapsed = time.time() - start_time

    successful = [r for r in results if r.status == "success"]
    for result in results:
        if result.status != "success":
            logger.debug(f"Failed to describe {result.host}:{result.port}: {result.error}")
        # stdout carries the JSON unless it goes to a file
        if args.output:
            console.print_certificate(result)

    formatter = OutputFormatter(args.output or "-")
    data = formatter.create_output(
        results,
        parameters={
            "port": args.port,
            "sni": args.sni,
            "timeout": args.timeout,
            "retry": args.retry,
            "verify": args.verify,
            "fingerprints": algorithms,
            "fingerprint_length": args.fingerprint_length,
        },
        statistics={
            "total_targets": len(targets),
            "successful": len(successful),
            "failed": len(results) - len(successful),
            "duration_seconds": round(elapsed, 3),
        },
    )

    if args.output:
        try:
            formatter.write_json(data)
        except IOError:
            logger.exception("Error writing output")
            console.error(f"Failed to write {args.output}")
            return 1
        console.success(f"Results written to {args.output}")
    else:
        formatter.write_stdout(data)

    return 0 if len(successful) == len(results) else 1
