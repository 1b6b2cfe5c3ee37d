"""
peercert - Peer Certificate Introspection

Extracts a normalized description of a TLS peer's X.509 certificate:
subject and issuer fields, subject alternative names, validity, serial
number and fingerprints.
"""

__version__ = "1.0.0"
__author__ = "peercert Team"

__all__ = [
    "AltName",
    "AltNameKind",
    "CertificateError",
    "CertificateInfo",
    "CertificateParser",
    "CertScanner",
    "Entity",
    "ErrorCode",
    "ScanResult",
    "get_peer_certificate_fingerprint",
    "get_peer_certificate_info",
]


def __getattr__(name: str):
    """Lazy import module attributes on first access."""
    if name in ("AltName", "AltNameKind", "CertificateInfo", "Entity"):
        from . import models
        return getattr(models, name)
    elif name in ("CertificateError", "ErrorCode"):
        from . import errors
        return getattr(errors, name)
    elif name in ("CertificateParser", "get_peer_certificate_info"):
        from . import certificate
        return getattr(certificate, name)
    elif name == "get_peer_certificate_fingerprint":
        from .fingerprint import get_peer_certificate_fingerprint
        return get_peer_certificate_fingerprint
    elif name in ("CertScanner", "ScanResult"):
        from . import scanner
        return getattr(scanner, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
