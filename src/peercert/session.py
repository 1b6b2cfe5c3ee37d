"""
Access to the peer certificate of an established TLS session.
"""

import logging
from typing import Any

from .errors import CertificateError, ErrorCode

logger = logging.getLogger(__name__)


def _ssl_object(session: Any) -> Any:
    """Resolve an asyncio StreamWriter or transport to its SSL object."""
    if hasattr(session, "get_extra_info"):
        return session.get_extra_info("ssl_object")
    return session


def peer_certificate_der(session: Any) -> bytes:
    """
    Return the DER encoding of the certificate presented by the peer.

    Args:
        session: ssl.SSLSocket, ssl.SSLObject, or an asyncio StreamWriter
            or transport wrapping one

    Returns:
        DER-encoded peer certificate

    Raises:
        CertificateError: NOT_CONNECTED or NO_PEER_CERTIFICATE
    """
    ssl_object = _ssl_object(session) if session is not None else None
    if ssl_object is None:
        raise CertificateError(
            message="not connected",
            error_code=ErrorCode.NOT_CONNECTED,
        )

    try:
        cert_der = ssl_object.getpeercert(binary_form=True)
    except (ValueError, OSError) as e:
        # Raised before the handshake completes or after the socket closed
        logger.debug(f"Cannot read peer certificate: {e}")
        raise CertificateError(
            message="not connected",
            error_code=ErrorCode.NOT_CONNECTED,
            error_details={"raw_message": str(e)},
        ) from e

    if not cert_der:
        raise CertificateError(
            message="peer does not have cert",
            error_code=ErrorCode.NO_PEER_CERTIFICATE,
        )
    return cert_der
