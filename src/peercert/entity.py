"""
Subject and issuer name extraction.
"""

from typing import Dict, Optional, Tuple

from asn1crypto import x509 as asn1_x509

from .converters import convert_name_attribute
from .models import Entity

# Entity field and attribute OID, in extraction order
NAME_ATTRIBUTES: Tuple[Tuple[str, str], ...] = (
    ("common_name", "2.5.4.3"),
    ("country_name", "2.5.4.6"),
    ("state_or_province_name", "2.5.4.8"),
    ("locality_name", "2.5.4.7"),
    ("street_address", "2.5.4.9"),
    ("organization_name", "2.5.4.10"),
    ("organizational_unit_name", "2.5.4.11"),
)


def extract_entity(name: asn1_x509.Name) -> Entity:
    """Build an Entity from a distinguished name, failing on the first bad attribute."""
    fields: Dict[str, Optional[str]] = {}
    for field_name, oid in NAME_ATTRIBUTES:
        fields[field_name] = convert_name_attribute(name, oid)
    return Entity(**fields)
