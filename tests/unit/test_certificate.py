"""
Unit tests for certificate parser.
"""

import ssl
from types import SimpleNamespace

import pytest

from peercert import certificate as certificate_module
from peercert.certificate import CertificateParser, get_peer_certificate_info
from peercert.errors import CertificateError, ErrorCode
from peercert.models import AltName, AltNameKind, CertificateInfo


class FakeSSLObject:
    """Stand-in for ssl.SSLObject returning a fixed peer certificate."""

    def __init__(self, cert_der=None, error=None):
        self._cert_der = cert_der
        self._error = error
        self.calls = 0

    def getpeercert(self, binary_form=False):
        self.calls += 1
        if self._error is not None:
            raise self._error
        return self._cert_der


class FakeWriter:
    """Stand-in for asyncio.StreamWriter exposing an SSL object."""

    def __init__(self, ssl_object):
        self._ssl_object = ssl_object

    def get_extra_info(self, name, default=None):
        if name == "ssl_object":
            return self._ssl_object
        return default


def test_parse_certificate(cert_der):
    """Test parsing a valid certificate."""
    cert_info = CertificateParser.parse_certificate(cert_der)

    assert isinstance(cert_info, CertificateInfo)
    assert cert_info.version == 2
    assert cert_info.not_before == "2024-01-01T00:00:00Z"
    assert cert_info.not_after == "2034-06-15T12:30:45Z"
    assert cert_info.serial == str(0x0123456789ABCDEF0123456789)


def test_extract_subject(cert_der):
    """Test extracting certificate subject."""
    subject = CertificateParser.parse_certificate(cert_der).subject

    assert subject.common_name == "test.example.com"
    assert subject.country_name == "US"
    assert subject.state_or_province_name == "California"
    assert subject.locality_name == "San Francisco"
    assert subject.organization_name == "Test Org"
    assert subject.organizational_unit_name == "Security"
    assert subject.street_address is None


def test_extract_issuer(certificate_factory):
    """Test that the issuer is extracted independently of the subject."""
    cert_info = CertificateParser.parse_certificate(
        certificate_factory(issuer_common_name="Test Root CA")
    )

    assert cert_info.issuer.common_name == "Test Root CA"
    assert cert_info.issuer.organization_name == "Test CA"
    assert cert_info.issuer.country_name is None
    assert cert_info.subject.common_name == "test.example.com"


def test_extract_san(cert_der):
    """Test extracting Subject Alternative Names in extension order."""
    alt_names = CertificateParser.parse_certificate(cert_der).alt_names

    assert alt_names == (
        AltName(AltNameKind.DNS, "test.example.com"),
        AltName(AltNameKind.DNS, "*.test.example.com"),
        AltName(AltNameKind.DNS, "another.example.com"),
        AltName(AltNameKind.EMAIL, "admin@example.com"),
        AltName(AltNameKind.URI, "https://test.example.com/"),
        AltName(AltNameKind.IPV4, b"\xc0\x00\x02\x0a"),
        AltName(AltNameKind.IPV6, b"\x20\x01\x0d\xb8" + b"\x00" * 11 + b"\x10"),
    )


def test_no_san_extension(certificate_factory):
    """Test a certificate without a SAN extension."""
    cert_info = CertificateParser.parse_certificate(certificate_factory(san=None))
    assert cert_info.alt_names == ()


def test_empty_san_extension(certificate_factory):
    """Test that an empty SAN extension yields no names rather than an error."""
    cert_info = CertificateParser.parse_certificate(certificate_factory(raw_san=b"\x30\x00"))
    assert cert_info.alt_names == ()


def test_single_space_san_rejected(certificate_factory):
    """Test that a " " dNSName fails the whole certificate."""
    cert_der = certificate_factory(raw_san=b"\x30\x03\x82\x01\x20")

    with pytest.raises(CertificateError) as exc_info:
        CertificateParser.parse_certificate(cert_der)
    assert exc_info.value.error_code == ErrorCode.CORRUPT_VALUE


def test_invalid_ip_length_rejected(certificate_factory):
    """Test that a 5-octet iPAddress fails the whole certificate."""
    cert_der = certificate_factory(raw_san=b"\x30\x07\x87\x05\x01\x02\x03\x04\x05")

    with pytest.raises(CertificateError) as exc_info:
        CertificateParser.parse_certificate(cert_der)
    assert exc_info.value.error_code == ErrorCode.INVALID_ADDRESS_LENGTH


def test_large_serial(certificate_factory):
    """Test a serial number wider than a native word."""
    serial = 2**158 + 987654321
    cert_info = CertificateParser.parse_certificate(certificate_factory(serial=serial))
    assert cert_info.serial == str(serial)


def test_small_serial(certificate_factory):
    """Test a serial number on the native word path."""
    cert_info = CertificateParser.parse_certificate(certificate_factory(serial=1))
    assert cert_info.serial == "1"


def test_validity_order(cert_der):
    """Test that notBefore does not come after notAfter."""
    cert_info = CertificateParser.parse_certificate(cert_der)
    assert cert_info.not_before <= cert_info.not_after


def test_inverted_validity_rejected(cert_der, monkeypatch):
    """Test that an inverted validity interval fails parsing."""
    times = iter(["2030-01-01T00:00:00Z", "2020-01-01T00:00:00Z"])
    monkeypatch.setattr(certificate_module, "convert_time", lambda text: next(times))

    with pytest.raises(CertificateError) as exc_info:
        CertificateParser.parse_certificate(cert_der)
    assert exc_info.value.error_code == ErrorCode.PARSE_ERROR


def test_garbage_rejected():
    """Test that non-certificate input fails with a parse error."""
    with pytest.raises(CertificateError) as exc_info:
        CertificateParser.parse_certificate(b"not a certificate")
    assert exc_info.value.error_code == ErrorCode.PARSE_ERROR


def test_trailing_data_rejected(cert_der):
    """Test that bytes after the certificate are rejected."""
    with pytest.raises(CertificateError) as exc_info:
        CertificateParser.parse_certificate(cert_der + b"\x00\x00")
    assert exc_info.value.error_code == ErrorCode.PARSE_ERROR


def test_negative_version_rejected():
    """Test that a negative version field is rejected."""
    with pytest.raises(CertificateError) as exc_info:
        CertificateParser._extract_version(SimpleNamespace(contents=b"\xff"))
    assert exc_info.value.error_code == ErrorCode.INVALID_VERSION


def test_missing_subject_and_issuer():
    """Test that absent name records fail with distinct codes."""
    tbs = {"subject": None, "issuer": None}

    with pytest.raises(CertificateError) as exc_info:
        CertificateParser._extract_name(tbs, "subject", ErrorCode.MISSING_SUBJECT)
    assert exc_info.value.error_code == ErrorCode.MISSING_SUBJECT

    with pytest.raises(CertificateError) as exc_info:
        CertificateParser._extract_name(tbs, "issuer", ErrorCode.MISSING_ISSUER)
    assert exc_info.value.error_code == ErrorCode.MISSING_ISSUER


def test_to_dict(cert_der):
    """Test the JSON-ready representation."""
    data = CertificateParser.parse_certificate(cert_der).to_dict()

    assert data["subject"]["common_name"] == "test.example.com"
    assert data["validity"] == {
        "not_before": "2024-01-01T00:00:00Z",
        "not_after": "2034-06-15T12:30:45Z",
    }
    assert {"type": "ipv4", "value": "192.0.2.10"} in data["alt_names"]
    assert {"type": "ipv6", "value": "2001:db8::10"} in data["alt_names"]


class TestGetPeerCertificateInfo:
    """Test certificate retrieval from sessions."""

    def test_ssl_object_session(self, cert_der):
        cert_info = get_peer_certificate_info(FakeSSLObject(cert_der))
        assert cert_info.subject.common_name == "test.example.com"

    def test_stream_writer_session(self, cert_der):
        cert_info = get_peer_certificate_info(FakeWriter(FakeSSLObject(cert_der)))
        assert cert_info.subject.common_name == "test.example.com"

    def test_repeated_calls_are_equal(self, cert_der):
        session = FakeSSLObject(cert_der)
        assert get_peer_certificate_info(session) == get_peer_certificate_info(session)
        assert session.calls == 2

    def test_no_session(self):
        with pytest.raises(CertificateError) as exc_info:
            get_peer_certificate_info(None)
        assert exc_info.value.error_code == ErrorCode.NOT_CONNECTED

    def test_writer_without_tls(self):
        with pytest.raises(CertificateError) as exc_info:
            get_peer_certificate_info(FakeWriter(None))
        assert exc_info.value.error_code == ErrorCode.NOT_CONNECTED

    def test_handshake_not_done(self):
        context = ssl.create_default_context()
        ssl_object = context.wrap_bio(
            ssl.MemoryBIO(), ssl.MemoryBIO(), server_hostname="example.com"
        )

        with pytest.raises(CertificateError) as exc_info:
            get_peer_certificate_info(ssl_object)
        assert exc_info.value.error_code == ErrorCode.NOT_CONNECTED

    def test_no_peer_certificate(self):
        with pytest.raises(CertificateError) as exc_info:
            get_peer_certificate_info(FakeSSLObject(None))
        assert exc_info.value.error_code == ErrorCode.NO_PEER_CERTIFICATE
        assert exc_info.value.error_category.value == "session"
