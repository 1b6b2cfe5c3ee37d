"""
Value records describing a peer certificate.
"""

import ipaddress
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union


class AltNameKind(str, Enum):
    """Subject alternative name kinds that are kept."""

    DNS = "dns"
    EMAIL = "email"
    URI = "uri"
    IPV4 = "ipv4"
    IPV6 = "ipv6"


@dataclass(frozen=True)
class AltName:
    """
    One subject alternative name.

    ``value`` is text for DNS/EMAIL/URI and the raw 4 or 16 address
    octets for IPV4/IPV6.
    """

    kind: AltNameKind
    value: Union[str, bytes]

    @property
    def is_address(self) -> bool:
        return self.kind in (AltNameKind.IPV4, AltNameKind.IPV6)

    def display_value(self) -> str:
        """Return the value as text, rendering addresses in standard notation."""
        if self.is_address:
            return str(ipaddress.ip_address(bytes(self.value)))  # type: ignore[arg-type]
        return str(self.value)

    def to_dict(self) -> Dict[str, str]:
        return {"type": self.kind.value, "value": self.display_value()}


@dataclass(frozen=True)
class Entity:
    """Subject or issuer name fields."""

    common_name: Optional[str] = None
    country_name: Optional[str] = None
    state_or_province_name: Optional[str] = None
    locality_name: Optional[str] = None
    street_address: Optional[str] = None
    organization_name: Optional[str] = None
    organizational_unit_name: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        """Return the present fields only."""
        return {
            name: value
            for name, value in self.__dict__.items()
            if value is not None
        }


@dataclass(frozen=True)
class CertificateInfo:
    """Normalized description of a peer certificate."""

    version: int
    subject: Entity
    issuer: Entity
    not_before: str
    not_after: str
    serial: str
    alt_names: Tuple[AltName, ...] = field(default_factory=tuple)

    def names_of_kind(self, kind: AltNameKind) -> Tuple[AltName, ...]:
        return tuple(name for name in self.alt_names if name.kind == kind)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "subject": self.subject.to_dict(),
            "issuer": self.issuer.to_dict(),
            "alt_names": [name.to_dict() for name in self.alt_names],
            "validity": {
                "not_before": self.not_before,
                "not_after": self.not_after,
            },
            "serial": self.serial,
        }
