"""Key pairs used to sign certificates, CSRs and CRLs.

A ``KeyPair`` owns exactly one backend signing key (``KeyPairKind``), the
catalogue algorithm it was created for and its PKCS#8 DER encoding. It is
immutable once built and can be shared between threads for signing and
export.

Parsing comes in two flavours:

  * with an explicit algorithm (``from_der_and_sign_algo``), which goes
    straight to that family's constructor and is the only way to pick e.g.
    RSA-PSS over RSA PKCS#1 for the same RSA key;
  * automatic (``from_der`` / ``from_pem``), which tries Ed25519, ECDSA
    P-256, P-384, P-521 and finally RSA PKCS#1 SHA-256, and keeps the first
    constructor that accepts the bytes.
"""
from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterator, List, Optional, Union

from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa

from ..errors import (
    CertForgeError,
    CouldNotParseKeyPair,
    KeyGenerationUnavailable,
)
from ..utils.logging import get_logger
from .backend import DEFAULT_BACKEND, SigningBackend
from .der import PrivateKeyFormat, private_key_format
from .pem import PRIVATE_KEY_LABEL, decode_pem, encode_pem
from .public_key import PublicKeyData
from .sign_algo import (
    PKCS_ECDSA_P256_SHA256,
    EcCurve,
    EcdsaSigning,
    EdDsaSigning,
    RsaPadding,
    RsaSigning,
    SignatureAlgorithm,
)

log = get_logger()


class RsaKeySize(IntEnum):
    """Modulus sizes accepted for RSA key generation."""

    RSA_2048 = 2048
    RSA_3072 = 3072
    RSA_4096 = 4096


@dataclass(frozen=True, repr=False)
class EcKind:
    signing_key: ec.EllipticCurvePrivateKey
    curve: EcCurve
    hash_name: str

    def __repr__(self) -> str:
        return f"EcKind(curve={self.curve.value}, hash={self.hash_name})"


@dataclass(frozen=True, repr=False)
class EdKind:
    signing_key: ed25519.Ed25519PrivateKey

    def __repr__(self) -> str:
        return "EdKind(ed25519)"


@dataclass(frozen=True, repr=False)
class RsaKind:
    signing_key: rsa.RSAPrivateKey
    padding: RsaPadding

    def __repr__(self) -> str:
        return f"RsaKind(bits={self.signing_key.key_size}, padding={self.padding.name})"


KeyPairKind = Union[EcKind, EdKind, RsaKind]


def _unknown_algorithm(alg: object) -> AssertionError:
    return AssertionError(f"Unknown SignatureAlgorithm specified: {alg!r}")


class SigningKey(PublicKeyData):
    """A key that can sign messages with its algorithm."""

    __slots__ = ()

    @abstractmethod
    def sign(self, message: bytes) -> bytes:
        ...


class KeyPair(SigningKey):
    """A key pair used to sign certificates and CSRs."""

    __slots__ = ("_kind", "_alg", "_serialized_der", "_backend")

    def __init__(self, kind: KeyPairKind, alg: SignatureAlgorithm, serialized_der: bytes, backend: SigningBackend):
        self._kind = kind
        self._alg = alg
        self._serialized_der = bytes(serialized_der)
        self._backend = backend

    # Generation

    @classmethod
    def generate(cls, backend: Optional[SigningBackend] = None) -> "KeyPair":
        """Generate a new random ECDSA P-256 key pair."""
        return cls.generate_for(PKCS_ECDSA_P256_SHA256, backend)

    @classmethod
    def generate_for(cls, alg: SignatureAlgorithm, backend: Optional[SigningBackend] = None) -> "KeyPair":
        """Generate a new random key pair for ``alg``.

        RSA algorithms get a 2048-bit key, on backends that can generate RSA
        keys at all; elsewhere ``KeyGenerationUnavailable`` is raised.
        """
        backend = backend or DEFAULT_BACKEND
        sign_alg = alg.sign_alg
        if isinstance(sign_alg, EcdsaSigning):
            key = backend.generate_ecdsa(sign_alg.curve)
            kind: KeyPairKind = EcKind(key, sign_alg.curve, sign_alg.hash_name)
        elif isinstance(sign_alg, EdDsaSigning):
            key = backend.generate_ed25519()
            kind = EdKind(key)
        elif isinstance(sign_alg, RsaSigning):
            return cls._generate_rsa(alg, sign_alg, RsaKeySize.RSA_2048, backend)
        else:
            raise _unknown_algorithm(alg)
        return cls(kind, alg, backend.private_key_der(key), backend)

    @classmethod
    def generate_rsa_for(
        cls,
        alg: SignatureAlgorithm,
        key_size: RsaKeySize,
        backend: Optional[SigningBackend] = None,
    ) -> "KeyPair":
        """Generate a new random RSA key pair of ``key_size`` bits.

        Raises ``KeyGenerationUnavailable`` for a non-RSA ``alg``.
        """
        backend = backend or DEFAULT_BACKEND
        if not isinstance(alg.sign_alg, RsaSigning):
            raise KeyGenerationUnavailable()
        return cls._generate_rsa(alg, alg.sign_alg, RsaKeySize(key_size), backend)

    @classmethod
    def _generate_rsa(
        cls,
        alg: SignatureAlgorithm,
        sign_alg: RsaSigning,
        key_size: RsaKeySize,
        backend: SigningBackend,
    ) -> "KeyPair":
        key = backend.generate_rsa(int(key_size))
        return cls(RsaKind(key, sign_alg.padding), alg, backend.private_key_der(key), backend)

    # Parsing with an explicit algorithm

    @classmethod
    def from_der_and_sign_algo(
        cls,
        der: bytes,
        alg: SignatureAlgorithm,
        backend: Optional[SigningBackend] = None,
    ) -> "KeyPair":
        """Load a PKCS#8, SEC1 or PKCS#1 private key as ``alg``.

        SEC1 and PKCS#1 are only understood by backends with legacy format
        support. Use this when several algorithms fit the same key.
        """
        return cls._from_der(bytes(der), alg, backend or DEFAULT_BACKEND, pkcs8_only=False)

    @classmethod
    def from_pkcs8_der_and_sign_algo(
        cls,
        der: bytes,
        alg: SignatureAlgorithm,
        backend: Optional[SigningBackend] = None,
    ) -> "KeyPair":
        """Load a PKCS#8 private key as ``alg``, whatever the backend."""
        return cls._from_der(bytes(der), alg, backend or DEFAULT_BACKEND, pkcs8_only=True)

    @classmethod
    def _from_der(cls, der: bytes, alg: SignatureAlgorithm, backend: SigningBackend, pkcs8_only: bool) -> "KeyPair":
        backend.require(alg)
        sign_alg = alg.sign_alg
        if isinstance(sign_alg, EdDsaSigning):
            key = backend.load_ed25519(der)
            kind: KeyPairKind = EdKind(key)
        elif isinstance(sign_alg, EcdsaSigning):
            key = backend.load_ecdsa(der, sign_alg.curve, pkcs8_only)
            kind = EcKind(key, sign_alg.curve, sign_alg.hash_name)
        elif isinstance(sign_alg, RsaSigning):
            key = backend.load_rsa(der, pkcs8_only)
            kind = RsaKind(key, sign_alg.padding)
        else:
            raise _unknown_algorithm(alg)
        return cls(kind, alg, _canonical_der(der, key, backend), backend)

    @classmethod
    def from_pem_and_sign_algo(
        cls,
        pem_str: Union[str, bytes],
        alg: SignatureAlgorithm,
        backend: Optional[SigningBackend] = None,
    ) -> "KeyPair":
        return cls.from_der_and_sign_algo(_private_key_pem_contents(pem_str), alg, backend)

    @classmethod
    def from_pkcs8_pem_and_sign_algo(
        cls,
        pem_str: Union[str, bytes],
        alg: SignatureAlgorithm,
        backend: Optional[SigningBackend] = None,
    ) -> "KeyPair":
        return cls.from_pkcs8_der_and_sign_algo(_private_key_pem_contents(pem_str), alg, backend)

    # Parsing with algorithm detection

    @classmethod
    def from_der(cls, der: bytes, backend: Optional[SigningBackend] = None) -> "KeyPair":
        """Load a private key, detecting its algorithm.

        The first algorithm in the backend's detection order whose
        constructor accepts ``der`` wins. RSA keys come back as RSA PKCS#1
        SHA-256; use ``from_der_and_sign_algo`` to choose another padding.
        """
        backend = backend or DEFAULT_BACKEND
        der = bytes(der)
        for alg in backend.detection_order():
            try:
                key_pair = cls._from_der(der, alg, backend, pkcs8_only=False)
            except CertForgeError:
                continue
            log.debug("detected %s private key", alg.name)
            return key_pair
        raise CouldNotParseKeyPair()

    @classmethod
    def from_pem(cls, pem_str: Union[str, bytes], backend: Optional[SigningBackend] = None) -> "KeyPair":
        """Load a "PRIVATE KEY", "EC PRIVATE KEY" or "RSA PRIVATE KEY" PEM block."""
        return cls.from_der(_private_key_pem_contents(pem_str), backend)

    # Accessors

    @property
    def algorithm(self) -> SignatureAlgorithm:
        return self._alg

    @property
    def kind(self) -> KeyPairKind:
        return self._kind

    @property
    def backend(self) -> SigningBackend:
        return self._backend

    def is_compatible(self, signature_algorithm: SignatureAlgorithm) -> bool:
        return self._alg is signature_algorithm

    def compatible_algs(self) -> Iterator[SignatureAlgorithm]:
        yield self._alg

    def public_key_raw(self) -> bytes:
        return self.der_bytes()

    def der_bytes(self) -> bytes:
        kind = self._kind
        if isinstance(kind, EcKind):
            return self._backend.ec_public_point(kind.signing_key)
        if isinstance(kind, EdKind):
            return self._backend.ed25519_public_bytes(kind.signing_key)
        if isinstance(kind, RsaKind):
            return self._backend.rsa_public_der(kind.signing_key)
        raise _unknown_algorithm(kind)

    def serialize_der(self) -> bytes:
        """PKCS#8 DER of the key pair, private key included."""
        return self._serialized_der

    def serialize_pem(self) -> str:
        return encode_pem(PRIVATE_KEY_LABEL, self._serialized_der)

    def sign(self, message: bytes) -> bytes:
        kind = self._kind
        if isinstance(kind, EcKind):
            return self._backend.sign_ecdsa(kind.signing_key, kind.hash_name, message)
        if isinstance(kind, EdKind):
            return self._backend.sign_ed25519(kind.signing_key, message)
        if isinstance(kind, RsaKind):
            return self._backend.sign_rsa(kind.signing_key, kind.padding, message)
        raise _unknown_algorithm(kind)

    def __repr__(self) -> str:
        return (
            f"KeyPair(kind={self._kind!r}, alg={self._alg!r}, "
            f"backend={self._backend.name}, serialized_der=[secret key elided])"
        )


def candidate_algorithms(der: bytes, backend: Optional[SigningBackend] = None) -> List[SignatureAlgorithm]:
    """Every algorithm in detection order whose constructor accepts ``der``.

    ``KeyPair.from_der`` picks the first entry; more than one entry means
    the bytes are ambiguous and the caller should name the algorithm.
    """
    backend = backend or DEFAULT_BACKEND
    der = bytes(der)
    found = []
    for alg in backend.detection_order():
        try:
            KeyPair._from_der(der, alg, backend, pkcs8_only=False)
        except CertForgeError:
            continue
        found.append(alg)
    if len(found) > 1:
        log.warning("private key matches several algorithms: %s", ", ".join(a.name for a in found))
    return found


def _private_key_pem_contents(pem_str: Union[str, bytes]) -> bytes:
    label, der = decode_pem(pem_str)
    if PrivateKeyFormat.from_pem_label(label) is None:
        raise CouldNotParseKeyPair(f"unexpected PEM label {label!r}")
    return der


def _canonical_der(der: bytes, key, backend: SigningBackend) -> bytes:
    # PKCS#8 input is kept byte for byte, legacy encodings are re-encoded
    if private_key_format(der) is PrivateKeyFormat.PKCS8:
        return der
    return backend.private_key_der(key)


__all__ = [
    "RsaKeySize",
    "EcKind",
    "EdKind",
    "RsaKind",
    "KeyPairKind",
    "SigningKey",
    "KeyPair",
    "candidate_algorithms",
]
