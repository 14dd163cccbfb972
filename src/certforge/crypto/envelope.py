"""Signed DER envelope shared by certificates, CSRs and CRLs.

    SEQUENCE {
        toBeSigned          SEQUENCE { ...payload... },
        signatureAlgorithm  AlgorithmIdentifier,
        signature           BIT STRING
    }

The payload writer fills the toBeSigned SEQUENCE; the bytes that get signed
are the serialized toBeSigned itself, embedded unchanged.
"""
from __future__ import annotations

from typing import Callable

from asn1crypto import core

from .der import DerSequenceWriter, SignedStructure, raw_sequence
from .key_pair import SigningKey

PayloadWriter = Callable[[DerSequenceWriter], None]


def sign_der(key: SigningKey, write_payload: PayloadWriter) -> bytes:
    writer = DerSequenceWriter()
    write_payload(writer)
    to_be_signed = writer.dump()

    signature = key.sign(to_be_signed)
    return SignedStructure({
        "to_be_signed": raw_sequence(to_be_signed),
        "signature_algorithm": raw_sequence(key.algorithm.write_alg_ident()),
        "signature": core.OctetBitString(signature),
    }).dump()


__all__ = ["PayloadWriter", "sign_der"]
