"""
Conversion of single ASN.1 values into owned, validated Python values.

Every function here either returns a plain Python value or raises
CertificateError; none of them keep references to the asn1crypto
objects they were given.
"""

import logging
import re
from datetime import timezone
from typing import Optional

from asn1crypto import core
from asn1crypto import x509 as asn1_x509

from .errors import CertificateError, ErrorCode, reports_memory_errors

logger = logging.getLogger(__name__)

# Constants
NATIVE_WORD_OCTETS = 8  # Encodings up to this size fit a signed 64-bit word
MAX_INTEGER_OCTETS = 128  # Upper bound for integer encodings (serials are <= 20)
DECIMAL_CHUNK_DIGITS = 18
DECIMAL_CHUNK = 10**DECIMAL_CHUNK_DIGITS

MONTHS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

_DAY_PATTERN = re.compile(r"^[0-9]{2}$")
_CLOCK_PATTERN = re.compile(r"^[0-9]{2}:[0-9]{2}:[0-9]{2}$")
_YEAR_PATTERN = re.compile(r"^[0-9]{4}$")


def _parse_error(message: str, raw: str) -> CertificateError:
    logger.debug(f"{message}: {raw!r}")
    return CertificateError(
        message=f"{message}: {raw}",
        error_code=ErrorCode.PARSE_ERROR,
        error_details={"raw": raw},
    )


def _format_native_word(value: int) -> str:
    return "%d" % value


def _format_bigint(value: int) -> str:
    """Convert a non-negative integer to decimal text in fixed-size chunks."""
    if value == 0:
        return "0"
    chunks = []
    while value:
        value, chunk = divmod(value, DECIMAL_CHUNK)
        chunks.append(chunk)
    head = "%d" % chunks.pop()
    return head + "".join("%0*d" % (DECIMAL_CHUNK_DIGITS, c) for c in reversed(chunks))


@reports_memory_errors
def convert_integer(encoding: bytes) -> str:
    """
    Convert the content octets of a DER INTEGER into decimal text.

    Args:
        encoding: Big-endian two's complement content octets

    Returns:
        Canonical decimal representation (no leading zeros)

    Raises:
        CertificateError: PARSE_ERROR for empty, oversized or negative values
    """
    raw = bytes(encoding).hex()
    if not encoding:
        raise _parse_error("cannot parse integer: empty encoding", raw)
    if len(encoding) > MAX_INTEGER_OCTETS:
        raise _parse_error("cannot parse integer: encoding too long", raw)

    value = int.from_bytes(encoding, "big", signed=True)
    if value < 0:
        raise _parse_error("cannot parse integer: negative value", raw)

    if len(encoding) <= NATIVE_WORD_OCTETS:
        return _format_native_word(value)
    return _format_bigint(value)


@reports_memory_errors
def render_asn1_time(time: core.Asn1Value) -> str:
    """
    Render an ASN.1 time as "Mon DD HH:MM:SS YYYY GMT".

    This is the classic ASN1_TIME_print layout, day padded with a space.
    Times carrying a UTC offset are shifted to GMT first.

    Args:
        time: asn1crypto Time choice, UTCTime or GeneralizedTime

    Returns:
        Rendered time text
    """
    value = time.chosen if isinstance(time, core.Choice) else time
    raw_contents = value.contents or b""
    try:
        moment = value.native
    except ValueError as e:
        raise _parse_error(
            "invalid time encoding", raw_contents.decode("latin-1")
        ) from e
    if moment is None:
        raise _parse_error("missing time value", raw_contents.decode("latin-1"))
    if moment.utcoffset():
        moment = moment.astimezone(timezone.utc)

    return "%s %2d %02d:%02d:%02d %d GMT" % (
        MONTHS[moment.month - 1],
        moment.day,
        moment.hour,
        moment.minute,
        moment.second,
        moment.year,
    )


@reports_memory_errors
def convert_time(text: str) -> str:
    """
    Convert "Mon DD HH:MM:SS YYYY [TZ]" into "YYYY-MM-DDTHH:MM:SSZ".

    Args:
        text: Time text; a single-digit day may be space padded ("Jan  1")

    Returns:
        ISO 8601 UTC timestamp

    Raises:
        CertificateError: PARSE_ERROR carrying the original text
    """
    buf = text
    # "Jan  1"
    if buf[3:5] == "  ":
        buf = buf[:4] + "0" + buf[5:]

    fields = buf.split(" ")
    if len(fields) < 4 or len(fields) > 5:
        raise _parse_error("invalid time format: no year", text)

    month, day, clock, year = fields[:4]
    zone = fields[4] if len(fields) == 5 else None
    if zone is not None and zone != "GMT":
        raise _parse_error("invalid time format: unsupported timezone", text)

    if month not in MONTHS:
        raise _parse_error("invalid time format: unknown month", text)

    if not (
        _DAY_PATTERN.match(day)
        and _CLOCK_PATTERN.match(clock)
        and _YEAR_PATTERN.match(year)
    ):
        raise _parse_error("invalid time format", text)

    return f"{year}-{MONTHS.index(month) + 1:02d}-{day}T{clock}Z"


@reports_memory_errors
def convert_name_attribute(name: asn1_x509.Name, oid: str) -> Optional[str]:
    """
    Look up the first attribute with the given OID in a distinguished name.

    Args:
        name: asn1crypto Name
        oid: Dotted attribute type, e.g. "2.5.4.3" for commonName

    Returns:
        The attribute value, or None when the name has no such attribute

    Raises:
        CertificateError: CORRUPT_VALUE for empty, non-text or NUL-carrying
            values, PARSE_ERROR for undecodable values
    """
    for rdn in name.chosen:
        for type_and_value in rdn:
            if type_and_value["type"].dotted != oid:
                continue
            try:
                value = type_and_value["value"].native
            except ValueError as e:
                raise CertificateError(
                    message=f"cannot decode name attribute {oid}",
                    error_code=ErrorCode.PARSE_ERROR,
                    error_details={"oid": oid},
                ) from e

            if not isinstance(value, str) or not value:
                logger.debug(f"Rejecting empty or non-text name attribute {oid}")
                raise CertificateError(
                    message="corrupt cert - invalid name attribute value",
                    error_code=ErrorCode.CORRUPT_VALUE,
                    error_details={"oid": oid},
                )
            if "\x00" in value:
                logger.debug(f"Rejecting name attribute {oid} with NUL bytes")
                raise CertificateError(
                    message="corrupt cert - NUL bytes in value",
                    error_code=ErrorCode.CORRUPT_VALUE,
                    error_details={"oid": oid},
                )
            return value
    return None
