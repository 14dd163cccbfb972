"""Signature algorithm catalogue.

Each entry is a module-level singleton compared by identity. It knows how to
encode itself as the AlgorithmIdentifier found in a SubjectPublicKeyInfo
(``write_oids_sign_alg``) and as the one found next to a signature
(``write_alg_ident``), and carries a backend tag describing how to sign:

  EcdsaSigning(curve, hash)   ECDSA, DER signature
  EdDsaSigning()              Ed25519
  RsaSigning(padding)         RSA PKCS#1 v1.5 or PSS

The table is built once at import and never mutated.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

from asn1crypto import algos, core

from .der import der_sequence

# Object identifiers
OID_EC_PUBLIC_KEY = "1.2.840.10045.2.1"
OID_EC_SECP_256_R1 = "1.2.840.10045.3.1.7"
OID_EC_SECP_384_R1 = "1.3.132.0.34"
OID_EC_SECP_521_R1 = "1.3.132.0.35"
OID_ECDSA_SHA256 = "1.2.840.10045.4.3.2"
OID_ECDSA_SHA384 = "1.2.840.10045.4.3.3"
OID_ECDSA_SHA512 = "1.2.840.10045.4.3.4"
OID_ED25519 = "1.3.101.112"
OID_RSA_ENCRYPTION = "1.2.840.113549.1.1.1"
OID_RSASSA_PSS = "1.2.840.113549.1.1.10"
OID_RSA_SHA256 = "1.2.840.113549.1.1.11"
OID_RSA_SHA384 = "1.2.840.113549.1.1.12"
OID_RSA_SHA512 = "1.2.840.113549.1.1.13"
OID_SHA256 = "2.16.840.1.101.3.4.2.1"


class EcCurve(Enum):
    P256 = "secp256r1"
    P384 = "secp384r1"
    P521 = "secp521r1"


class RsaPadding(Enum):
    PKCS1_SHA256 = ("pkcs1", "sha256")
    PKCS1_SHA384 = ("pkcs1", "sha384")
    PKCS1_SHA512 = ("pkcs1", "sha512")
    PSS_SHA256 = ("pss", "sha256")

    @property
    def scheme(self) -> str:
        return self.value[0]

    @property
    def hash_name(self) -> str:
        return self.value[1]


@dataclass(frozen=True)
class EcdsaSigning:
    curve: EcCurve
    hash_name: str


@dataclass(frozen=True)
class EdDsaSigning:
    pass


@dataclass(frozen=True)
class RsaSigning:
    padding: RsaPadding


SignAlgo = Union[EcdsaSigning, EdDsaSigning, RsaSigning]


@dataclass(frozen=True)
class RsaPssParams:
    hash_name: str
    salt_length: int


@dataclass(frozen=True, eq=False)
class SignatureAlgorithm:
    name: str
    # OIDs written into the SubjectPublicKeyInfo AlgorithmIdentifier
    oids_sign_alg: Tuple[str, ...]
    # NULL parameters after oids_sign_alg (RSA keys)
    write_null_params: bool
    sign_alg: SignAlgo
    # signatureAlgorithm OID
    oid_components: str
    # signatureAlgorithm parameters: None (absent), "null", or PSS parameters
    params: Union[None, str, RsaPssParams]

    def oid(self) -> str:
        return self.oid_components

    def write_oids_sign_alg(self) -> bytes:
        """AlgorithmIdentifier as it appears inside a SubjectPublicKeyInfo."""
        items: list = [core.ObjectIdentifier(oid) for oid in self.oids_sign_alg]
        if self.write_null_params:
            items.append(core.Null())
        return der_sequence(items)

    def write_alg_ident(self) -> bytes:
        """AlgorithmIdentifier as it appears next to a signature."""
        items: list = [core.ObjectIdentifier(self.oid_components)]
        if self.params == "null":
            items.append(core.Null())
        elif isinstance(self.params, RsaPssParams):
            items.append(_rsa_pss_params(self.params))
        return der_sequence(items)

    @staticmethod
    def iter() -> Tuple["SignatureAlgorithm", ...]:
        return ALL_ALGORITHMS

    @staticmethod
    def by_name(name: str) -> Optional["SignatureAlgorithm"]:
        for alg in ALL_ALGORITHMS:
            if alg.name == name:
                return alg
        return None

    def __repr__(self) -> str:
        return f"SignatureAlgorithm({self.name})"


def _rsa_pss_params(params: RsaPssParams) -> algos.RSASSAPSSParams:
    # RFC 4055 section 3.1; trailerField is omitted
    return algos.RSASSAPSSParams({
        "hash_algorithm": {"algorithm": params.hash_name},
        "mask_gen_algorithm": {
            "algorithm": "mgf1",
            "parameters": {"algorithm": params.hash_name},
        },
        "salt_length": params.salt_length,
    })


PKCS_RSA_SHA256 = SignatureAlgorithm(
    name="rsa-sha256",
    oids_sign_alg=(OID_RSA_ENCRYPTION,),
    write_null_params=True,
    sign_alg=RsaSigning(RsaPadding.PKCS1_SHA256),
    oid_components=OID_RSA_SHA256,
    params="null",
)

PKCS_RSA_SHA384 = SignatureAlgorithm(
    name="rsa-sha384",
    oids_sign_alg=(OID_RSA_ENCRYPTION,),
    write_null_params=True,
    sign_alg=RsaSigning(RsaPadding.PKCS1_SHA384),
    oid_components=OID_RSA_SHA384,
    params="null",
)

PKCS_RSA_SHA512 = SignatureAlgorithm(
    name="rsa-sha512",
    oids_sign_alg=(OID_RSA_ENCRYPTION,),
    write_null_params=True,
    sign_alg=RsaSigning(RsaPadding.PKCS1_SHA512),
    oid_components=OID_RSA_SHA512,
    params="null",
)

# Salt length equals the SHA-256 digest size, matching what the backend signs with.
PKCS_RSA_PSS_SHA256 = SignatureAlgorithm(
    name="rsa-pss-sha256",
    oids_sign_alg=(OID_RSASSA_PSS,),
    write_null_params=False,
    sign_alg=RsaSigning(RsaPadding.PSS_SHA256),
    oid_components=OID_RSASSA_PSS,
    params=RsaPssParams(hash_name="sha256", salt_length=32),
)

PKCS_ECDSA_P256_SHA256 = SignatureAlgorithm(
    name="ecdsa-p256",
    oids_sign_alg=(OID_EC_PUBLIC_KEY, OID_EC_SECP_256_R1),
    write_null_params=False,
    sign_alg=EcdsaSigning(EcCurve.P256, "sha256"),
    oid_components=OID_ECDSA_SHA256,
    params=None,
)

PKCS_ECDSA_P384_SHA384 = SignatureAlgorithm(
    name="ecdsa-p384",
    oids_sign_alg=(OID_EC_PUBLIC_KEY, OID_EC_SECP_384_R1),
    write_null_params=False,
    sign_alg=EcdsaSigning(EcCurve.P384, "sha384"),
    oid_components=OID_ECDSA_SHA384,
    params=None,
)

PKCS_ECDSA_P521_SHA512 = SignatureAlgorithm(
    name="ecdsa-p521",
    oids_sign_alg=(OID_EC_PUBLIC_KEY, OID_EC_SECP_521_R1),
    write_null_params=False,
    sign_alg=EcdsaSigning(EcCurve.P521, "sha512"),
    oid_components=OID_ECDSA_SHA512,
    params=None,
)

PKCS_ED25519 = SignatureAlgorithm(
    name="ed25519",
    oids_sign_alg=(OID_ED25519,),
    write_null_params=False,
    sign_alg=EdDsaSigning(),
    oid_components=OID_ED25519,
    params=None,
)

ALL_ALGORITHMS: Tuple[SignatureAlgorithm, ...] = (
    PKCS_RSA_SHA256,
    PKCS_RSA_SHA384,
    PKCS_RSA_SHA512,
    PKCS_RSA_PSS_SHA256,
    PKCS_ECDSA_P256_SHA256,
    PKCS_ECDSA_P384_SHA384,
    PKCS_ECDSA_P521_SHA512,
    PKCS_ED25519,
)

# Probe order used when a private key is parsed without an algorithm.
DETECTION_ORDER: Tuple[SignatureAlgorithm, ...] = (
    PKCS_ED25519,
    PKCS_ECDSA_P256_SHA256,
    PKCS_ECDSA_P384_SHA384,
    PKCS_ECDSA_P521_SHA512,
    PKCS_RSA_SHA256,
)


__all__ = [
    "EcCurve",
    "RsaPadding",
    "EcdsaSigning",
    "EdDsaSigning",
    "RsaSigning",
    "SignAlgo",
    "RsaPssParams",
    "SignatureAlgorithm",
    "PKCS_RSA_SHA256",
    "PKCS_RSA_SHA384",
    "PKCS_RSA_SHA512",
    "PKCS_RSA_PSS_SHA256",
    "PKCS_ECDSA_P256_SHA256",
    "PKCS_ECDSA_P384_SHA384",
    "PKCS_ECDSA_P521_SHA512",
    "PKCS_ED25519",
    "ALL_ALGORITHMS",
    "DETECTION_ORDER",
]
