"""
X.509 certificate parsing into CertificateInfo records.
"""

import logging
from typing import Any

from asn1crypto import core
from asn1crypto import x509 as asn1_x509

from .altnames import collect_alt_names
from .converters import convert_integer, convert_time, render_asn1_time
from .entity import extract_entity
from .errors import CertificateError, ErrorCode, reports_memory_errors
from .models import CertificateInfo, Entity
from .session import peer_certificate_der

logger = logging.getLogger(__name__)


class CertificateParser:
    """
    Parses DER-encoded X.509 certificates into CertificateInfo records.

    A record is only built once every field converted successfully;
    any failure raises CertificateError and no record is produced.
    """

    @staticmethod
    @reports_memory_errors
    def parse_certificate(cert_der: bytes) -> CertificateInfo:
        """
        Parse a DER-encoded certificate.

        Args:
            cert_der: Certificate in DER format

        Returns:
            CertificateInfo describing the certificate

        Raises:
            CertificateError: if any part of the certificate is invalid
        """
        try:
            cert = asn1_x509.Certificate.load(cert_der, strict=True)
            tbs = cert["tbs_certificate"]

            version = CertificateParser._extract_version(tbs["version"])
            subject = CertificateParser._extract_name(
                tbs, "subject", ErrorCode.MISSING_SUBJECT
            )
            issuer = CertificateParser._extract_name(
                tbs, "issuer", ErrorCode.MISSING_ISSUER
            )
            alt_names = collect_alt_names(cert)

            validity = tbs["validity"]
            not_before = convert_time(render_asn1_time(validity["not_before"]))
            not_after = convert_time(render_asn1_time(validity["not_after"]))

            serial = convert_integer(tbs["serial_number"].contents or b"")
        except ValueError as e:
            logger.debug(f"Certificate parsing failed: {e}")
            raise CertificateError(
                message=f"Certificate parsing failed: {e}",
                error_code=ErrorCode.PARSE_ERROR,
            ) from e

        # Both bounds are zero-padded ISO 8601, so text order is time order
        if not_before > not_after:
            raise CertificateError(
                message="invalid validity interval",
                error_code=ErrorCode.PARSE_ERROR,
                error_details={"raw": f"{not_before} > {not_after}"},
            )

        return CertificateInfo(
            version=version,
            subject=subject,
            issuer=issuer,
            alt_names=tuple(alt_names),
            not_before=not_before,
            not_after=not_after,
            serial=serial,
        )

    @staticmethod
    def _extract_version(version: core.Integer) -> int:
        """Read the raw 0-based version field (v3 is 2)."""
        encoding = version.contents if version is not None else None
        if not encoding:
            raise CertificateError(
                message="invalid version",
                error_code=ErrorCode.INVALID_VERSION,
            )
        value = int.from_bytes(encoding, "big", signed=True)
        if value < 0:
            raise CertificateError(
                message="invalid version",
                error_code=ErrorCode.INVALID_VERSION,
                error_details={"version": value},
            )
        return value

    @staticmethod
    def _extract_name(tbs: Any, field_name: str, missing_code: ErrorCode) -> Entity:
        """Extract the subject or issuer entity."""
        name = tbs[field_name]
        if name is None or isinstance(name, core.Void) or name.contents is None:
            raise CertificateError(
                message=f"cert does not have {field_name}",
                error_code=missing_code,
            )
        return extract_entity(name)


def get_peer_certificate_info(session: Any) -> CertificateInfo:
    """
    Describe the certificate presented by the peer of a TLS session.

    Args:
        session: Connected ssl.SSLSocket, ssl.SSLObject or asyncio StreamWriter

    Returns:
        CertificateInfo for the peer certificate

    Raises:
        CertificateError: NOT_CONNECTED, NO_PEER_CERTIFICATE, or any
            certificate validation failure
    """
    return CertificateParser.parse_certificate(peer_certificate_der(session))
