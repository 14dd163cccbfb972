"""Public key view: anything that can describe itself as a SubjectPublicKeyInfo."""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Union

from asn1crypto import core

from ..errors import PemError, UnsupportedSignatureAlgorithm, X509ParseError
from .der import SubjectPublicKeyInfoAsn1, bit_string_bytes, encoded_length, raw_sequence
from .pem import PUBLIC_KEY_LABEL, decode_pem, encode_pem
from .sign_algo import SignatureAlgorithm


class PublicKeyData(ABC):
    """The public half of a key plus the algorithm it is used with."""

    __slots__ = ()

    @abstractmethod
    def der_bytes(self) -> bytes:
        """Raw public key as the backend encodes it (not DER-wrapped)."""

    @property
    @abstractmethod
    def algorithm(self) -> SignatureAlgorithm:
        ...

    def subject_public_key_info(self) -> bytes:
        """DER SubjectPublicKeyInfo, RFC 5280 section 4.1."""
        return serialize_public_key_der(self)

    def public_key_pem(self) -> str:
        return encode_pem(PUBLIC_KEY_LABEL, self.subject_public_key_info())


def serialize_public_key_der(key: PublicKeyData) -> bytes:
    return SubjectPublicKeyInfoAsn1({
        "algorithm": raw_sequence(key.algorithm.write_oids_sign_alg()),
        "subject_public_key": core.OctetBitString(key.der_bytes()),
    }).dump()


@dataclass(frozen=True)
class SubjectPublicKeyInfo(PublicKeyData):
    alg: SignatureAlgorithm
    subject_public_key: bytes

    def der_bytes(self) -> bytes:
        return self.subject_public_key

    @property
    def algorithm(self) -> SignatureAlgorithm:
        return self.alg

    @classmethod
    def from_der(cls, spki_der: bytes) -> "SubjectPublicKeyInfo":
        try:
            if encoded_length(spki_der) != len(spki_der):
                raise X509ParseError("trailing bytes in SubjectPublicKeyInfo")
            spki = SubjectPublicKeyInfoAsn1.load(spki_der, strict=True)
            algorithm_der = spki["algorithm"].dump()
            public_key = bit_string_bytes(spki["subject_public_key"])
        except (ValueError, TypeError) as e:
            raise X509ParseError(str(e)) from e

        for alg in SignatureAlgorithm.iter():
            if alg.write_oids_sign_alg() == algorithm_der:
                return cls(alg=alg, subject_public_key=public_key)
        raise UnsupportedSignatureAlgorithm()

    @classmethod
    def from_pem(cls, pem_str: Union[str, bytes]) -> "SubjectPublicKeyInfo":
        label, der = decode_pem(pem_str)
        if label != PUBLIC_KEY_LABEL:
            raise PemError(f"expected {PUBLIC_KEY_LABEL}, found {label}")
        return cls.from_der(der)


__all__ = ["PublicKeyData", "SubjectPublicKeyInfo", "serialize_public_key_der"]
