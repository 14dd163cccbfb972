"""Signing backends.

A backend owns every call into ``cryptography``: loading private keys,
generating them, signing, verifying and encoding public keys. Two profiles
exist; one is picked from configuration (CERTFORGE_BACKEND) at import:

  openssl   PKCS#8 plus the legacy SEC1 ("EC PRIVATE KEY") and PKCS#1
            ("RSA PRIVATE KEY") encodings; ECDSA P-256/P-384/P-521;
            RSA key generation.
  pkcs8     PKCS#8 only; ECDSA P-256/P-384; no RSA key generation.

Exceptions raised by ``cryptography`` are converted here, by ``_key_rejected``
for key loading and ``_unspecified`` for generation, signing and
verification, and nowhere else.
"""
from __future__ import annotations

from typing import Dict, FrozenSet, Tuple, Union

from asn1crypto import keys
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, padding, rsa

from ..config import BACKEND
from ..errors import (
    BackendKeyRejected,
    BackendUnspecifiedFailure,
    CouldNotParseKeyPair,
    KeyGenerationUnavailable,
    UnsupportedSignatureAlgorithm,
)
from ..utils.logging import get_logger
from .der import PrivateKeyFormat, private_key_format
from .sign_algo import (
    DETECTION_ORDER,
    EcCurve,
    EcdsaSigning,
    EdDsaSigning,
    RsaPadding,
    RsaSigning,
    SignatureAlgorithm,
)

log = get_logger()

PrivateKey = Union[ec.EllipticCurvePrivateKey, ed25519.Ed25519PrivateKey, rsa.RSAPrivateKey]
PublicKey = Union[ec.EllipticCurvePublicKey, ed25519.Ed25519PublicKey, rsa.RSAPublicKey]

# smallest modulus accepted for signing
MIN_RSA_KEY_BITS = 2048
RSA_PUBLIC_EXPONENT = 65537

_CURVES = {
    EcCurve.P256: ec.SECP256R1,
    EcCurve.P384: ec.SECP384R1,
    EcCurve.P521: ec.SECP521R1,
}

_HASHES = {
    "sha256": hashes.SHA256,
    "sha384": hashes.SHA384,
    "sha512": hashes.SHA512,
}

_BACKEND_ERRORS = (ValueError, TypeError, UnsupportedAlgorithm)


def _key_rejected(e: Exception) -> BackendKeyRejected:
    return BackendKeyRejected(str(e) or e.__class__.__name__)


def _unspecified(e: Exception) -> BackendUnspecifiedFailure:
    return BackendUnspecifiedFailure(str(e) or None)


def _hash(name: str) -> hashes.HashAlgorithm:
    return _HASHES[name]()


def _rsa_padding(rsa_padding: RsaPadding) -> padding.AsymmetricPadding:
    if rsa_padding.scheme == "pss":
        # salt length equals the digest length
        h = _hash(rsa_padding.hash_name)
        return padding.PSS(mgf=padding.MGF1(h), salt_length=h.digest_size)
    return padding.PKCS1v15()


class SigningBackend:
    """Capability interface shared by the backend profiles."""

    name = "abstract"
    supports_legacy_formats = False
    supports_rsa_generation = False
    supported_curves: FrozenSet[EcCurve] = frozenset()

    def supports(self, alg: SignatureAlgorithm) -> bool:
        sign_alg = alg.sign_alg
        if isinstance(sign_alg, EcdsaSigning):
            return sign_alg.curve in self.supported_curves
        return isinstance(sign_alg, (EdDsaSigning, RsaSigning))

    def require(self, alg: SignatureAlgorithm) -> None:
        if not self.supports(alg):
            raise UnsupportedSignatureAlgorithm(
                f"{alg.name} is not supported by the {self.name} backend"
            )

    def detection_order(self) -> Tuple[SignatureAlgorithm, ...]:
        return tuple(alg for alg in DETECTION_ORDER if self.supports(alg))

    # Loading

    def _load(self, der: bytes, pkcs8_only: bool = False) -> PrivateKey:
        fmt = private_key_format(der)
        if fmt is None:
            raise CouldNotParseKeyPair()
        if fmt is not PrivateKeyFormat.PKCS8 and (pkcs8_only or not self.supports_legacy_formats):
            raise BackendKeyRejected(f"{fmt.pem_label} encoding not accepted, PKCS#8 required")
        try:
            return serialization.load_der_private_key(der, password=None)
        except _BACKEND_ERRORS as e:
            raise _key_rejected(e) from e

    def load_ed25519(self, der: bytes) -> ed25519.Ed25519PrivateKey:
        key = self._load(der, pkcs8_only=True)
        if not isinstance(key, ed25519.Ed25519PrivateKey):
            raise BackendKeyRejected("WrongAlgorithm")
        return key

    def load_ecdsa(self, der: bytes, curve: EcCurve, pkcs8_only: bool = False) -> ec.EllipticCurvePrivateKey:
        if curve not in self.supported_curves:
            raise UnsupportedSignatureAlgorithm(f"curve {curve.value} is not supported by the {self.name} backend")
        key = self._load(der, pkcs8_only)
        if not isinstance(key, ec.EllipticCurvePrivateKey):
            raise BackendKeyRejected("WrongAlgorithm")
        if key.curve.name != curve.value:
            raise BackendKeyRejected(f"WrongAlgorithm: key is on {key.curve.name}, expected {curve.value}")
        return key

    def load_rsa(self, der: bytes, pkcs8_only: bool = False) -> rsa.RSAPrivateKey:
        key = self._load(der, pkcs8_only)
        if not isinstance(key, rsa.RSAPrivateKey):
            raise BackendKeyRejected("WrongAlgorithm")
        if key.key_size < MIN_RSA_KEY_BITS:
            raise BackendKeyRejected(f"TooSmall: {key.key_size}-bit modulus")
        return key

    # Generation

    def generate_ed25519(self) -> ed25519.Ed25519PrivateKey:
        try:
            return ed25519.Ed25519PrivateKey.generate()
        except _BACKEND_ERRORS as e:
            raise _unspecified(e) from e

    def generate_ecdsa(self, curve: EcCurve) -> ec.EllipticCurvePrivateKey:
        if curve not in self.supported_curves:
            raise UnsupportedSignatureAlgorithm(f"curve {curve.value} is not supported by the {self.name} backend")
        try:
            return ec.generate_private_key(_CURVES[curve]())
        except _BACKEND_ERRORS as e:
            raise _unspecified(e) from e

    def generate_rsa(self, key_bits: int) -> rsa.RSAPrivateKey:
        if not self.supports_rsa_generation:
            raise KeyGenerationUnavailable()
        try:
            return rsa.generate_private_key(public_exponent=RSA_PUBLIC_EXPONENT, key_size=key_bits)
        except _BACKEND_ERRORS as e:
            raise _unspecified(e) from e

    def private_key_der(self, key: PrivateKey) -> bytes:
        """PKCS#8 DER of ``key``."""
        try:
            return key.private_bytes(
                encoding=serialization.Encoding.DER,
                format=serialization.PrivateFormat.PKCS8,
                encryption_algorithm=serialization.NoEncryption(),
            )
        except _BACKEND_ERRORS as e:
            raise _unspecified(e) from e

    # Signing

    def sign_ecdsa(self, key: ec.EllipticCurvePrivateKey, hash_name: str, message: bytes) -> bytes:
        # OpenSSL draws a fresh nonce for every call
        try:
            return key.sign(message, ec.ECDSA(_hash(hash_name)))
        except _BACKEND_ERRORS as e:
            raise _unspecified(e) from e

    def sign_ed25519(self, key: ed25519.Ed25519PrivateKey, message: bytes) -> bytes:
        try:
            return key.sign(message)
        except _BACKEND_ERRORS as e:
            raise _unspecified(e) from e

    def sign_rsa(self, key: rsa.RSAPrivateKey, rsa_padding: RsaPadding, message: bytes) -> bytes:
        try:
            signature = key.sign(message, _rsa_padding(rsa_padding), _hash(rsa_padding.hash_name))
        except _BACKEND_ERRORS as e:
            raise _unspecified(e) from e
        if len(signature) != rsa_modulus_len(key):
            raise BackendUnspecifiedFailure(
                f"signature is {len(signature)} bytes, modulus is {rsa_modulus_len(key)}"
            )
        return signature

    # Public keys

    def ec_public_point(self, key: ec.EllipticCurvePrivateKey) -> bytes:
        return key.public_key().public_bytes(
            encoding=serialization.Encoding.X962,
            format=serialization.PublicFormat.UncompressedPoint,
        )

    def ed25519_public_bytes(self, key: ed25519.Ed25519PrivateKey) -> bytes:
        return key.public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )

    def rsa_public_der(self, key: rsa.RSAPrivateKey) -> bytes:
        return key.public_key().public_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PublicFormat.PKCS1,
        )

    def load_public_key(self, alg: SignatureAlgorithm, raw: bytes) -> PublicKey:
        """Rebuild a public key from the raw bytes ``der_bytes()`` returns."""
        sign_alg = alg.sign_alg
        try:
            if isinstance(sign_alg, EcdsaSigning):
                return ec.EllipticCurvePublicKey.from_encoded_point(_CURVES[sign_alg.curve](), raw)
            if isinstance(sign_alg, EdDsaSigning):
                return ed25519.Ed25519PublicKey.from_public_bytes(raw)
            if isinstance(sign_alg, RsaSigning):
                parsed = keys.RSAPublicKey.load(raw, strict=True)
                numbers = rsa.RSAPublicNumbers(parsed["public_exponent"].native, parsed["modulus"].native)
                return numbers.public_key()
        except _BACKEND_ERRORS as e:
            raise _key_rejected(e) from e
        raise AssertionError(f"Unknown SignatureAlgorithm specified: {alg!r}")

    def verify(self, alg: SignatureAlgorithm, public_key: PublicKey, message: bytes, signature: bytes) -> bool:
        sign_alg = alg.sign_alg
        try:
            if isinstance(sign_alg, EcdsaSigning):
                public_key.verify(signature, message, ec.ECDSA(_hash(sign_alg.hash_name)))
            elif isinstance(sign_alg, EdDsaSigning):
                public_key.verify(signature, message)
            elif isinstance(sign_alg, RsaSigning):
                public_key.verify(signature, message, _rsa_padding(sign_alg.padding), _hash(sign_alg.padding.hash_name))
            else:
                raise AssertionError(f"Unknown SignatureAlgorithm specified: {alg!r}")
        except InvalidSignature:
            return False
        except _BACKEND_ERRORS as e:
            raise _unspecified(e) from e
        return True

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name})"


def rsa_modulus_len(key: rsa.RSAPrivateKey) -> int:
    n = key.public_key().public_numbers().n
    return (n.bit_length() + 7) // 8


class OpenSSLBackend(SigningBackend):
    name = "openssl"
    supports_legacy_formats = True
    supports_rsa_generation = True
    supported_curves = frozenset({EcCurve.P256, EcCurve.P384, EcCurve.P521})


class Pkcs8Backend(SigningBackend):
    name = "pkcs8"
    supports_legacy_formats = False
    supports_rsa_generation = False
    supported_curves = frozenset({EcCurve.P256, EcCurve.P384})


BACKENDS: Dict[str, SigningBackend] = {
    OpenSSLBackend.name: OpenSSLBackend(),
    Pkcs8Backend.name: Pkcs8Backend(),
}


def get_backend(name: str) -> SigningBackend:
    try:
        return BACKENDS[name]
    except KeyError:
        raise ValueError(f"unknown signing backend {name!r}; expected one of {sorted(BACKENDS)}") from None


DEFAULT_BACKEND = get_backend(BACKEND)
log.debug("signing backend: %s", DEFAULT_BACKEND.name)


__all__ = [
    "PrivateKey",
    "PublicKey",
    "SigningBackend",
    "OpenSSLBackend",
    "Pkcs8Backend",
    "BACKENDS",
    "DEFAULT_BACKEND",
    "MIN_RSA_KEY_BITS",
    "get_backend",
    "rsa_modulus_len",
]
