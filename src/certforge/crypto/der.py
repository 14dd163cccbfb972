"""DER building blocks on top of asn1crypto.

Everything here works on already-encoded values: elements are carried as
``core.Any`` or generic ``core.Sequence`` so re-serialization never alters
bytes produced elsewhere.
"""
from __future__ import annotations

from enum import Enum
from typing import Iterable, List, Optional, Union

from asn1crypto import core, parser

DerValue = Union[core.Asn1Value, bytes, bytearray]


class _AnySequence(core.SequenceOf):
    _child_spec = core.Any


def _as_any(value: DerValue) -> core.Any:
    if isinstance(value, core.Any):
        return value
    if isinstance(value, core.Asn1Value):
        return core.Any(value)
    if isinstance(value, (bytes, bytearray)):
        return core.Any.load(bytes(value), strict=True)
    raise TypeError(f"expected an asn1crypto value or DER bytes, got {type(value).__name__}")


def der_sequence(items: Iterable[DerValue]) -> bytes:
    """Encode ``items`` (asn1crypto values or DER bytes) as one SEQUENCE."""
    return _AnySequence([_as_any(i) for i in items]).dump()


class DerSequenceWriter:
    """Collects the elements of a SEQUENCE that is being built.

    Payload writers handed to :func:`certforge.crypto.envelope.sign_der`
    receive one of these and append their fields in order.
    """

    def __init__(self) -> None:
        self._items: List[core.Any] = []

    def write(self, value: DerValue) -> None:
        self._items.append(_as_any(value))

    def write_der(self, der: bytes) -> None:
        self._items.append(core.Any.load(der, strict=True))

    def __len__(self) -> int:
        return len(self._items)

    def dump(self) -> bytes:
        return _AnySequence(self._items).dump()


# Inner SEQUENCEs use the generic core.Sequence: their children are never
# parsed and dump() returns the bytes exactly as received.

class SubjectPublicKeyInfoAsn1(core.Sequence):
    _fields = [
        ("algorithm", core.Sequence),
        ("subject_public_key", core.OctetBitString),
    ]


class SignedStructure(core.Sequence):
    """SEQUENCE { toBeSigned, signatureAlgorithm, signature BIT STRING }."""

    _fields = [
        ("to_be_signed", core.Sequence),
        ("signature_algorithm", core.Sequence),
        ("signature", core.OctetBitString),
    ]


def raw_sequence(der: bytes) -> core.Sequence:
    """Wrap an encoded SEQUENCE so it can be placed in a field as is."""
    return core.Sequence.load(der, strict=True)


def bit_string_bytes(value: core.OctetBitString) -> bytes:
    """Payload of a BIT STRING that must have zero unused bits."""
    contents = value.contents or b""
    if not contents:
        raise ValueError("BIT STRING without unused-bits octet")
    if contents[0] != 0:
        raise ValueError(f"BIT STRING has {contents[0]} unused bits")
    return contents[1:]


class PrivateKeyFormat(Enum):
    PKCS8 = "PRIVATE KEY"
    SEC1 = "EC PRIVATE KEY"
    PKCS1 = "RSA PRIVATE KEY"

    @property
    def pem_label(self) -> str:
        return self.value

    @classmethod
    def from_pem_label(cls, label: str) -> Optional["PrivateKeyFormat"]:
        for fmt in cls:
            if fmt.value == label:
                return fmt
        return None


# tag of the element following the version INTEGER
_SECOND_ELEMENT_FORMATS = {
    16: PrivateKeyFormat.PKCS8,  # AlgorithmIdentifier SEQUENCE
    4: PrivateKeyFormat.SEC1,    # privateKey OCTET STRING
    2: PrivateKeyFormat.PKCS1,   # modulus INTEGER
}


def private_key_format(der: bytes) -> Optional[PrivateKeyFormat]:
    """Tell PKCS#8, SEC1 and PKCS#1 private keys apart by their shape.

    Returns ``None`` when ``der`` is not a single well-formed SEQUENCE that
    starts with a version INTEGER.
    """
    try:
        class_, method, tag, _, body, _ = parser.parse(der, strict=True)
        if (class_, method, tag) != (0, 1, 16):
            return None
        class_, _, tag, header, contents, trailer = parser.parse(body)
        if (class_, tag) != (0, 2):
            return None
        rest = body[len(header) + len(contents) + len(trailer):]
        class_, _, tag, _, _, _ = parser.parse(rest)
    except ValueError:
        return None
    if class_ != 0:
        return None
    return _SECOND_ELEMENT_FORMATS.get(tag)


def encoded_length(der: bytes) -> int:
    """Number of bytes taken by the first DER value in ``der``."""
    return parser.peek(der)


__all__ = [
    "DerValue",
    "DerSequenceWriter",
    "der_sequence",
    "SubjectPublicKeyInfoAsn1",
    "SignedStructure",
    "raw_sequence",
    "bit_string_bytes",
    "PrivateKeyFormat",
    "private_key_format",
    "encoded_length",
]
