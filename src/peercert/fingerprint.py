"""
Peer certificate fingerprint calculation.
"""

import logging
from typing import Any, Callable, Dict

from cryptography.hazmat.primitives import hashes

from .errors import CertificateError, ErrorCode, reports_memory_errors
from .session import peer_certificate_der

logger = logging.getLogger(__name__)

FINGERPRINT_ALGORITHMS: Dict[str, Callable[[], hashes.HashAlgorithm]] = {
    "sha1": hashes.SHA1,
    "sha256": hashes.SHA256,
}


def _digest_factory(algorithm: str) -> Callable[[], hashes.HashAlgorithm]:
    factory = FINGERPRINT_ALGORITHMS.get(algorithm.lower())
    if factory is None:
        raise CertificateError(
            message="invalid fingerprint algorithm",
            error_code=ErrorCode.UNSUPPORTED_ALGORITHM,
            error_details={"algorithm": algorithm},
        )
    return factory


@reports_memory_errors
def certificate_fingerprint(cert_der: bytes, algorithm: str, buffer: Any) -> int:
    """
    Digest a DER-encoded certificate into a caller-supplied buffer.

    The digest is truncated to ``len(buffer)`` when the buffer is smaller.
    The working copy of the digest is zeroed before returning. The
    immutable bytes returned by the hash object cannot be wiped; the
    reference is dropped as soon as it has been copied.

    Args:
        cert_der: Certificate in DER format
        algorithm: "sha1" or "sha256", case-insensitive
        buffer: Writable bytes-like object (bytearray, memoryview)

    Returns:
        Number of bytes written to ``buffer``
    """
    digest = hashes.Hash(_digest_factory(algorithm)())
    digest.update(cert_der)
    digest_bytes = digest.finalize()
    work = bytearray(digest_bytes)
    del digest_bytes
    try:
        written = min(len(work), len(buffer))
        with memoryview(work) as view:
            buffer[:written] = view[:written]
        return written
    finally:
        work[:] = bytes(len(work))


def get_peer_certificate_fingerprint(session: Any, algorithm: str, buffer: Any) -> int:
    """
    Compute the fingerprint of the certificate presented by the peer.

    Args:
        session: Connected ssl.SSLSocket, ssl.SSLObject or asyncio StreamWriter
        algorithm: "sha1" or "sha256", case-insensitive
        buffer: Writable bytes-like object receiving the digest

    Returns:
        Number of bytes written to ``buffer``

    Raises:
        CertificateError: NOT_CONNECTED, NO_PEER_CERTIFICATE or
            UNSUPPORTED_ALGORITHM
    """
    cert_der = peer_certificate_der(session)
    written = certificate_fingerprint(cert_der, algorithm, buffer)
    logger.debug(f"Computed {algorithm} fingerprint, {written} bytes written")
    return written
