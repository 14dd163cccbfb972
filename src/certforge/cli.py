from __future__ import annotations

import argparse
from pathlib import Path

from .crypto.backend import BACKENDS, DEFAULT_BACKEND
from .crypto.key_pair import KeyPair, RsaKeySize, candidate_algorithms
from .crypto.pem import decode_pem
from .crypto.sign_algo import RsaSigning, SignatureAlgorithm
from .errors import CertForgeError
from .utils.logging import get_logger

log = get_logger()

ALGORITHM_NAMES = [alg.name for alg in SignatureAlgorithm.iter()]


def _backend(args: argparse.Namespace):
    return BACKENDS[args.backend] if args.backend else DEFAULT_BACKEND


def _load_key(args: argparse.Namespace) -> KeyPair:
    text = Path(args.key).read_text(encoding="ascii")
    if args.alg:
        return KeyPair.from_pem_and_sign_algo(text, SignatureAlgorithm.by_name(args.alg), _backend(args))
    return KeyPair.from_pem(text, _backend(args))


def cmd_keygen(args: argparse.Namespace) -> int:
    alg = SignatureAlgorithm.by_name(args.alg)
    backend = _backend(args)
    if isinstance(alg.sign_alg, RsaSigning):
        kp = KeyPair.generate_rsa_for(alg, RsaKeySize(args.rsa_bits), backend)
    else:
        kp = KeyPair.generate_for(alg, backend)
    Path(args.out).write_text(kp.serialize_pem(), encoding="ascii")
    log.info("generated %s key with %s backend", alg.name, backend.name)
    print(f"wrote {args.out} ({alg.name})")
    if args.pub:
        Path(args.pub).write_text(kp.public_key_pem(), encoding="ascii")
        print(f"wrote {args.pub}")
    return 0


def cmd_pubkey(args: argparse.Namespace) -> int:
    kp = _load_key(args)
    print(kp.public_key_pem(), end="")
    return 0


def cmd_inspect(args: argparse.Namespace) -> int:
    kp = _load_key(args)
    _, der = decode_pem(Path(args.key).read_text(encoding="ascii"))
    candidates = candidate_algorithms(der, _backend(args))
    print(f"algorithm: {kp.algorithm.name}")
    print(f"candidates: {', '.join(a.name for a in candidates)}")
    print(f"public key bytes: {len(kp.public_key_raw())}")
    return 0


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser("certforge")
    p.add_argument("--backend", choices=sorted(BACKENDS), default=None)
    sub = p.add_subparsers(dest="cmd", required=True)

    p_keygen = sub.add_parser("keygen")
    p_keygen.add_argument("--alg", choices=ALGORITHM_NAMES, default="ecdsa-p256")
    p_keygen.add_argument("--rsa-bits", dest="rsa_bits", type=int, choices=[int(s) for s in RsaKeySize], default=2048)
    p_keygen.add_argument("--out", required=True)
    p_keygen.add_argument("--pub", default=None)
    p_keygen.set_defaults(func=cmd_keygen)

    p_pubkey = sub.add_parser("pubkey")
    p_pubkey.add_argument("--key", required=True)
    p_pubkey.add_argument("--alg", choices=ALGORITHM_NAMES, default=None)
    p_pubkey.set_defaults(func=cmd_pubkey)

    p_inspect = sub.add_parser("inspect")
    p_inspect.add_argument("--key", required=True)
    p_inspect.add_argument("--alg", choices=ALGORITHM_NAMES, default=None)
    p_inspect.set_defaults(func=cmd_inspect)

    args = p.parse_args(argv)
    try:
        return args.func(args)
    except CertForgeError as e:
        log.error("%s", e)
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
