"""Error taxonomy shared by certforge and the document builders on top of it.

Every failure leaves the library as a ``CertForgeError`` subclass. Errors
coming from ``cryptography`` or ``asn1crypto`` are converted where those
libraries are called and chained with ``raise ... from``; their types never
appear in a public signature.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional


class CertForgeError(Exception):
    """Base class for every certforge error."""

    message = "certforge error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)


class CouldNotParseCertificate(CertForgeError):
    message = "Could not parse certificate"


class CouldNotParseCertificationRequest(CertForgeError):
    message = "Could not parse certificate signing request"


class CouldNotParseKeyPair(CertForgeError):
    message = "Could not parse key pair"


class InvalidNameType(CertForgeError):
    message = "Invalid subject alternative name type"


class Asn1StringKind(Enum):
    PRINTABLE_STRING = "PrintableString"
    UNIVERSAL_STRING = "UniversalString"
    IA5_STRING = "IA5String"
    TELETEX_STRING = "TeletexString"
    BMP_STRING = "BMPString"


class InvalidAsn1String(CertForgeError):
    """A value does not fit the character set of its ASN.1 string type."""

    def __init__(self, kind: Asn1StringKind, value: str):
        self.kind = kind
        self.value = value
        super().__init__(f"Invalid {kind.value}: '{value}'")


class InvalidIpAddressOctetLength(CertForgeError):
    """An IP address was given as bytes of a length other than 4 or 16."""

    def __init__(self, length: int):
        self.length = length
        super().__init__(f"Invalid IP address octet length of {length} bytes")


class KeyGenerationUnavailable(CertForgeError):
    message = "There is no support for generating keys for the given algorithm"


class UnsupportedExtension(CertForgeError):
    message = "Unsupported extension requested in CSR"


class UnsupportedSignatureAlgorithm(CertForgeError):
    message = "The requested signature algorithm is not supported"


class BackendUnspecifiedFailure(CertForgeError):
    """The signing backend failed; ``detail`` carries its text when it gave any."""

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail
        if detail:
            super().__init__(f"Unspecified backend error: {detail}")
        else:
            super().__init__("Unspecified backend error")


class BackendKeyRejected(CertForgeError):
    """The signing backend refused the key material while loading it."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Key rejected by backend: {detail}")


class TimeError(CertForgeError):
    message = "Time error"


class PemError(CertForgeError):
    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"PEM error: {detail}")


class RemoteKeyError(CertForgeError):
    message = "Remote key error"


class UnsupportedInCsr(CertForgeError):
    message = "Certificate parameter unsupported in CSR"


class InvalidCrlNextUpdate(CertForgeError):
    message = "Invalid CRL next update parameter"


class IssuerNotCrlSigner(CertForgeError):
    message = "CRL issuer must specify no key usage, or key usage including cRLSign"


class X509ParseError(CertForgeError):
    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"X.509 parsing error: {detail}")


__all__ = [
    "CertForgeError",
    "CouldNotParseCertificate",
    "CouldNotParseCertificationRequest",
    "CouldNotParseKeyPair",
    "InvalidNameType",
    "Asn1StringKind",
    "InvalidAsn1String",
    "InvalidIpAddressOctetLength",
    "KeyGenerationUnavailable",
    "UnsupportedExtension",
    "UnsupportedSignatureAlgorithm",
    "BackendUnspecifiedFailure",
    "BackendKeyRejected",
    "TimeError",
    "PemError",
    "RemoteKeyError",
    "UnsupportedInCsr",
    "InvalidCrlNextUpdate",
    "IssuerNotCrlSigner",
    "X509ParseError",
]
