"""PEM framing with one fixed output layout (64 column base64, LF endings)."""
from __future__ import annotations

from typing import Tuple, Union

from asn1crypto import pem

from ..errors import PemError

PRIVATE_KEY_LABEL = "PRIVATE KEY"
RSA_PRIVATE_KEY_LABEL = "RSA PRIVATE KEY"
EC_PRIVATE_KEY_LABEL = "EC PRIVATE KEY"
PUBLIC_KEY_LABEL = "PUBLIC KEY"


def encode_pem(label: str, der: bytes) -> str:
    return pem.armor(label, der).decode("ascii")


def decode_pem(data: Union[str, bytes]) -> Tuple[str, bytes]:
    """Return ``(label, der)`` for the first PEM block in ``data``."""
    if isinstance(data, str):
        try:
            data = data.encode("ascii")
        except UnicodeEncodeError as e:
            raise PemError("non-ASCII characters in PEM input") from e
    if not pem.detect(data):
        raise PemError("no PEM block found")
    try:
        label, _headers, der = pem.unarmor(data)
    except ValueError as e:
        raise PemError(str(e)) from e
    return label, der


__all__ = [
    "PRIVATE_KEY_LABEL",
    "RSA_PRIVATE_KEY_LABEL",
    "EC_PRIVATE_KEY_LABEL",
    "PUBLIC_KEY_LABEL",
    "encode_pem",
    "decode_pem",
]
