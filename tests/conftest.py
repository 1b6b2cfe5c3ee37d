"""
Shared test fixtures: self-signed certificate generation.
"""

import datetime
import ipaddress

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import ExtensionOID, NameOID

NOT_BEFORE = datetime.datetime(2024, 1, 1, tzinfo=datetime.timezone.utc)
NOT_AFTER = datetime.datetime(2034, 6, 15, 12, 30, 45, tzinfo=datetime.timezone.utc)
TEST_SERIAL = 0x0123456789ABCDEF0123456789

DEFAULT_SAN = [
    x509.DNSName("test.example.com"),
    x509.DNSName("*.test.example.com"),
    x509.DNSName("another.example.com"),
    x509.RFC822Name("admin@example.com"),
    x509.UniformResourceIdentifier("https://test.example.com/"),
    x509.IPAddress(ipaddress.ip_address("192.0.2.10")),
    x509.IPAddress(ipaddress.ip_address("2001:db8::10")),
]

_KEY = None


def _private_key():
    """Generate one EC key per test session; key generation dominates runtime."""
    global _KEY
    if _KEY is None:
        _KEY = ec.generate_private_key(ec.SECP256R1())
    return _KEY


def build_certificate(
    common_name: str = "test.example.com",
    san=DEFAULT_SAN,
    raw_san=None,
    serial: int = TEST_SERIAL,
    not_before: datetime.datetime = NOT_BEFORE,
    not_after: datetime.datetime = NOT_AFTER,
    issuer_common_name: str = None,
):
    """
    Create a self-signed test certificate.

    Args:
        common_name: Subject common name
        san: List of GeneralName values, or None for no SAN extension
        raw_san: DER bytes to use verbatim as the SAN extension value
        serial: Serial number
        not_before: Start of validity
        not_after: End of validity
        issuer_common_name: Issuer common name (defaults to the subject's)

    Returns:
        Tuple of (private key, cryptography Certificate)
    """
    private_key = _private_key()

    subject = x509.Name(
        [
            x509.NameAttribute(NameOID.COUNTRY_NAME, "US"),
            x509.NameAttribute(NameOID.STATE_OR_PROVINCE_NAME, "California"),
            x509.NameAttribute(NameOID.LOCALITY_NAME, "San Francisco"),
            x509.NameAttribute(NameOID.ORGANIZATION_NAME, "Test Org"),
            x509.NameAttribute(NameOID.ORGANIZATIONAL_UNIT_NAME, "Security"),
            x509.NameAttribute(NameOID.COMMON_NAME, common_name),
        ]
    )
    issuer = x509.Name(
        [
            x509.NameAttribute(NameOID.ORGANIZATION_NAME, "Test CA"),
            x509.NameAttribute(NameOID.COMMON_NAME, issuer_common_name or common_name),
        ]
    )

    builder = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(issuer)
        .public_key(private_key.public_key())
        .serial_number(serial)
        .not_valid_before(not_before)
        .not_valid_after(not_after)
    )
    if raw_san is not None:
        builder = builder.add_extension(
            x509.UnrecognizedExtension(ExtensionOID.SUBJECT_ALTERNATIVE_NAME, raw_san),
            critical=False,
        )
    elif san is not None:
        builder = builder.add_extension(x509.SubjectAlternativeName(san), critical=False)

    return private_key, builder.sign(private_key, hashes.SHA256())


def create_test_certificate(**kwargs) -> bytes:
    """Create a self-signed test certificate in DER format."""
    _, cert = build_certificate(**kwargs)
    return cert.public_bytes(encoding=serialization.Encoding.DER)


@pytest.fixture
def certificate_factory():
    """Factory producing DER-encoded test certificates."""
    return create_test_certificate


@pytest.fixture
def cert_der():
    """A DER-encoded certificate with the default alternative names."""
    return create_test_certificate()


@pytest.fixture
def key_and_certificate_factory():
    """Factory producing (private key, cryptography Certificate) pairs."""
    return build_certificate
