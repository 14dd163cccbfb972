"""Verification helpers for signatures produced by key pairs and envelopes."""
from __future__ import annotations

from typing import Optional

from ..errors import X509ParseError
from .backend import DEFAULT_BACKEND, SigningBackend
from .der import SignedStructure, bit_string_bytes, encoded_length
from .public_key import PublicKeyData


def verify_signature(
    public_key: PublicKeyData,
    message: bytes,
    signature: bytes,
    backend: Optional[SigningBackend] = None,
) -> bool:
    backend = backend or DEFAULT_BACKEND
    pk = backend.load_public_key(public_key.algorithm, public_key.der_bytes())
    return backend.verify(public_key.algorithm, pk, message, signature)


def verify_signed_structure(
    der: bytes,
    public_key: PublicKeyData,
    backend: Optional[SigningBackend] = None,
) -> bool:
    """Check a ``sign_der`` envelope against ``public_key``.

    False when the envelope names a different signature algorithm or the
    signature does not cover the embedded toBeSigned bytes.
    """
    try:
        if encoded_length(der) != len(der):
            raise X509ParseError("trailing bytes after signed structure")
        signed = SignedStructure.load(der, strict=True)
        to_be_signed = signed["to_be_signed"].dump()
        algorithm_der = signed["signature_algorithm"].dump()
        signature = bit_string_bytes(signed["signature"])
    except (ValueError, TypeError) as e:
        raise X509ParseError(str(e)) from e
    if algorithm_der != public_key.algorithm.write_alg_ident():
        return False
    return verify_signature(public_key, to_be_signed, signature, backend)


__all__ = ["verify_signature", "verify_signed_structure"]
