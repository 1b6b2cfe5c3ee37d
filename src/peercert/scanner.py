"""
TLS connection handling and peer certificate retrieval.
"""

import asyncio
import logging
import ssl
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .certificate import get_peer_certificate_info
from .errors import CertificateError, ErrorCategory, ErrorCode, classify_connect_error
from .fingerprint import get_peer_certificate_fingerprint
from .models import CertificateInfo

logger = logging.getLogger(__name__)

# Constants
BACKOFF_BASE = 2  # Base for exponential backoff calculation
DEFAULT_TIMEOUT = 5  # Default connection timeout in seconds
DEFAULT_RETRY_COUNT = 3  # Default number of retry attempts
DEFAULT_PORT = 443  # Default HTTPS port
SSL_SHUTDOWN_TIMEOUT = 2  # Timeout for SSL shutdown (some servers hang)
MAX_DIGEST_SIZE = 64  # Large enough for any supported digest

_STATUS_BY_CODE = {
    ErrorCode.CONN_TIMEOUT: "timeout",
    ErrorCode.CONN_REFUSED: "refused",
    ErrorCode.TLS_HANDSHAKE_FAILED: "tls_error",
}

Target = Tuple[str, Optional[int], Optional[str]]


@dataclass
class ScanResult:
    """Result from retrieving the certificate of a single target."""

    host: str
    port: int
    status: str
    sni: Optional[str] = None
    certificate: Optional[CertificateInfo] = None
    fingerprints: Dict[str, str] = field(default_factory=dict)
    tls_version: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    error_category: Optional[str] = None
    error_details: Optional[Dict[str, Any]] = None
    retry_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "host": self.host,
            "port": self.port,
            "status": self.status,
            "sni": self.sni,
            "tls_version": self.tls_version,
            "certificate": self.certificate.to_dict() if self.certificate else None,
            "fingerprints": dict(self.fingerprints),
            "retry_count": self.retry_count,
        }
        if self.error:
            data["error"] = self.error
            data["error_code"] = self.error_code
            data["error_category"] = self.error_category
            data["error_details"] = self.error_details
        return data


class CertScanner:
    """
    Connects to TLS endpoints and describes their certificates.

    Chain and hostname verification are disabled unless ``verify`` is set;
    the certificate is described whether or not it would validate.
    """

    def __init__(
        self,
        timeout: int = DEFAULT_TIMEOUT,
        retry_count: int = DEFAULT_RETRY_COUNT,
        port: int = DEFAULT_PORT,
        verify: bool = False,
        fingerprint_algorithms: Sequence[str] = ("sha256",),
        fingerprint_length: Optional[int] = None,
    ):
        """
        Initialize the scanner.

        Args:
            timeout: Connection timeout in seconds
            retry_count: Maximum number of retry attempts
            port: Default target port
            verify: Verify the certificate chain and hostname
            fingerprint_algorithms: Digest algorithms to fingerprint with
            fingerprint_length: Truncate fingerprints to this many bytes
        """
        self.timeout = timeout
        self.retry_count = retry_count
        self.port = port
        self.verify = verify
        self.fingerprint_algorithms = list(fingerprint_algorithms)
        self.fingerprint_length = fingerprint_length
        self._ssl_context = self._create_ssl_context()

    def _create_ssl_context(self) -> ssl.SSLContext:
        context = ssl.create_default_context()
        if not self.verify:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context

    @staticmethod
    async def _safe_close_writer(writer: asyncio.StreamWriter) -> None:
        """
        Close a StreamWriter with a timeout for SSL shutdown.

        Args:
            writer: The StreamWriter to close
        """
        writer.close()
        try:
            await asyncio.wait_for(writer.wait_closed(), timeout=SSL_SHUTDOWN_TIMEOUT)
        except asyncio.TimeoutError:
            logger.debug("SSL shutdown timed out, continuing")
        except (OSError, ssl.SSLError) as e:
            logger.debug(f"Error while closing connection: {e}")

    async def scan_target(
        self,
        host: str,
        port: Optional[int] = None,
        sni: Optional[str] = None,
    ) -> ScanResult:
        """
        Retrieve and describe the certificate of a single target.

        Args:
            host: Target hostname or IP address
            port: Target port (uses default if not specified)
            sni: Server Name Indication to send

        Returns:
            ScanResult with the certificate description or failure details
        """
        target_port = port or self.port

        for attempt in range(self.retry_count + 1):
            try:
                result = await self._connect_and_describe(host, target_port, sni)
                result.retry_count = attempt
                return result
            except CertificateError as e:
                # Deterministic for a given certificate, not worth retrying
                logger.debug(f"Certificate error for {host}:{target_port}: {e}")
                return ScanResult(
                    host=host,
                    port=target_port,
                    status="cert_error",
                    sni=sni,
                    error=str(e),
                    error_code=e.error_code.value,
                    error_category=e.error_category.value,
                    error_details=e.error_details,
                    retry_count=attempt,
                )
            except (asyncio.TimeoutError, OSError, EOFError) as e:
                logger.debug(
                    f"Error connecting to {host}:{target_port} "
                    f"(attempt {attempt + 1}): {e!r}"
                )
                error_code, details = classify_connect_error(e)
                retryable = error_code not in (
                    ErrorCode.CONN_REFUSED,
                    ErrorCode.TLS_HANDSHAKE_FAILED,
                )
                if attempt == self.retry_count or not retryable:
                    failure = CertificateError(
                        message=str(e) or type(e).__name__,
                        error_code=error_code,
                        error_details=details,
                    )
                    return ScanResult(
                        host=host,
                        port=target_port,
                        status=_STATUS_BY_CODE.get(error_code, "error"),
                        sni=sni,
                        error=failure.message,
                        error_code=error_code.value,
                        error_category=failure.error_category.value,
                        error_details=details,
                        retry_count=attempt,
                    )

            # Exponential backoff between retries
            await asyncio.sleep(BACKOFF_BASE**attempt)

        # Should not reach here, but return error if it does
        return ScanResult(
            host=host,
            port=target_port,
            status="error",
            sni=sni,
            error="Max retries exceeded",
            error_code=ErrorCode.UNKNOWN_ERROR.value,
            error_category=ErrorCategory.UNKNOWN.value,
            error_details={"max_retries": self.retry_count},
            retry_count=self.retry_count,
        )

    async def _connect_and_describe(
        self,
        host: str,
        port: int,
        sni: Optional[str] = None,
    ) -> ScanResult:
        """
        Connect to the target and describe its certificate.

        Args:
            host: Target hostname or IP address
            port: Target port
            sni: Server Name Indication to send

        Returns:
            ScanResult with certificate information
        """
        _, writer = await asyncio.wait_for(
            asyncio.open_connection(
                host,
                port,
                ssl=self._ssl_context,
                server_hostname=sni or None,
            ),
            timeout=self.timeout,
        )

        try:
            ssl_object = writer.get_extra_info("ssl_object")
            tls_version = ssl_object.version() if ssl_object is not None else None

            certificate = get_peer_certificate_info(writer)
            fingerprints: Dict[str, str] = {}
            for algorithm in self.fingerprint_algorithms:
                buffer = bytearray(self.fingerprint_length or MAX_DIGEST_SIZE)
                written = get_peer_certificate_fingerprint(writer, algorithm, buffer)
                fingerprints[algorithm.lower()] = buffer[:written].hex()
        finally:
            await self._safe_close_writer(writer)

        return ScanResult(
            host=host,
            port=port,
            status="success",
            sni=sni,
            certificate=certificate,
            fingerprints=fingerprints,
            tls_version=tls_version,
        )

    async def scan_multiple(
        self,
        targets: List[Target],
        concurrency: int = 10,
    ) -> List[ScanResult]:
        """
        Scan multiple targets concurrently.

        Args:
            targets: List of (host, port, sni) tuples
            concurrency: Maximum number of concurrent connections

        Returns:
            List of scan results, in target order
        """
        semaphore = asyncio.Semaphore(concurrency)

        async def scan_with_semaphore(target: Target) -> ScanResult:
            async with semaphore:
                target_host, target_port, target_sni = target
                return await self.scan_target(target_host, target_port, target_sni)

        results = await asyncio.gather(
            *(scan_with_semaphore(target) for target in targets),
            return_exceptions=True,
        )

        processed_results: List[ScanResult] = []
        for (host, port, sni), result in zip(targets, results):
            if isinstance(result, ScanResult):
                processed_results.append(result)
                continue
            logger.warning(f"Scan of {host} failed unexpectedly: {result!r}")
            processed_results.append(
                ScanResult(
                    host=host,
                    port=port or self.port,
                    status="error",
                    sni=sni,
                    error=f"Scan failed: {result}",
                    error_code=ErrorCode.UNKNOWN_ERROR.value,
                    error_category=ErrorCategory.UNKNOWN.value,
                )
            )
        return processed_results
