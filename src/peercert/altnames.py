"""
Subject Alternative Name collection.

See RFC 5280 section 4.2.1.6 for the SubjectAltName rules applied here.
"""

import logging
from typing import List

from asn1crypto import core
from asn1crypto import x509 as asn1_x509

from .errors import CertificateError, ErrorCode, reports_memory_errors
from .models import AltName, AltNameKind

logger = logging.getLogger(__name__)

# Constants
MAX_ALT_NAMES = 10000  # Ceiling on the declared entry count

TEXT_NAME_KINDS = {
    "dns_name": AltNameKind.DNS,
    "rfc822_name": AltNameKind.EMAIL,
    "uniform_resource_identifier": AltNameKind.URI,
}

ADDRESS_KINDS = {
    4: AltNameKind.IPV4,
    16: AltNameKind.IPV6,
}


def _corrupt(message: str, kind: str) -> CertificateError:
    logger.debug(f"Rejecting {kind} alternative name: {message}")
    return CertificateError(
        message=message,
        error_code=ErrorCode.CORRUPT_VALUE,
        error_details={"alt_name_type": kind},
    )


def _load_text_name(general_name: asn1_x509.GeneralName, kind: AltNameKind) -> AltName:
    """Validate an IA5String alternative name and copy it out."""
    try:
        value = general_name.chosen
    except ValueError as e:
        # Constructed or otherwise mis-encoded string
        raise _corrupt(f"unexpected string encoding: {e}", kind.value) from e

    data = value.contents
    if data is None:
        raise _corrupt("missing string value", kind.value)

    # RFC 5280: disallow empty strings.
    if len(data) == 0 or b"\x00" in data:
        raise _corrupt("invalid string value", kind.value)

    # RFC 5280: " " is a legal domain name, but that dNSName must be rejected.
    if data == b" ":
        raise _corrupt("single space as name", kind.value)

    if any(octet > 0x7F for octet in data):
        raise _corrupt("non-IA5 characters in string value", kind.value)

    return AltName(kind=kind, value=data.decode("ascii"))


def _load_ip_address(value: core.Asn1Value) -> AltName:
    """Validate an iPAddress alternative name and copy its octets."""
    data = value.contents
    if data is None:
        raise _corrupt("negative length for ipaddress", "ip_address")

    # RFC 5280: IPv4 must use 4 octets and IPv6 must use 16 octets.
    kind = ADDRESS_KINDS.get(len(data))
    if kind is None:
        logger.debug(f"Rejecting ip_address alternative name of {len(data)} octets")
        raise CertificateError(
            message="invalid length for ipaddress",
            error_code=ErrorCode.INVALID_ADDRESS_LENGTH,
            error_details={"length": len(data)},
        )
    return AltName(kind=kind, value=bytes(data))


@reports_memory_errors
def decode_alt_names(general_names: asn1_x509.GeneralNames) -> List[AltName]:
    """
    Decode an already parsed GeneralNames sequence.

    Args:
        general_names: asn1crypto GeneralNames

    Returns:
        Alternative names in extension order; unknown kinds are skipped

    Raises:
        CertificateError: on the first structurally invalid entry
    """
    alt_names: List[AltName] = []
    try:
        count = len(general_names)
        if count > MAX_ALT_NAMES:
            raise CertificateError(
                message=f"too many alternative names: {count}",
                error_code=ErrorCode.PARSE_ERROR,
                error_details={"count": count, "limit": MAX_ALT_NAMES},
            )

        for general_name in general_names:
            name_type = general_name.name
            if name_type in TEXT_NAME_KINDS:
                alt_names.append(
                    _load_text_name(general_name, TEXT_NAME_KINDS[name_type])
                )
            elif name_type == "ip_address":
                alt_names.append(_load_ip_address(general_name.chosen))
            # other name types are ignored
    except ValueError as e:
        raise CertificateError(
            message=f"cannot parse subject alternative names: {e}",
            error_code=ErrorCode.PARSE_ERROR,
        ) from e

    return alt_names


def collect_alt_names(certificate: asn1_x509.Certificate) -> List[AltName]:
    """
    Collect the subject alternative names of a certificate.

    Args:
        certificate: asn1crypto Certificate

    Returns:
        Alternative names in extension order, empty if there is no extension
    """
    try:
        general_names = certificate.subject_alt_name_value
    except ValueError as e:
        raise CertificateError(
            message=f"cannot read subject alternative name extension: {e}",
            error_code=ErrorCode.PARSE_ERROR,
        ) from e

    if general_names is None:
        return []
    return decode_alt_names(general_names)
