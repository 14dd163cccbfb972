from functools import lru_cache

import pytest

from certforge.crypto.backend import BACKENDS, OpenSSLBackend
from certforge.crypto.key_pair import KeyPair
from certforge.crypto.sign_algo import SignatureAlgorithm

OPENSSL = BACKENDS["openssl"]
PKCS8 = BACKENDS["pkcs8"]


@lru_cache(maxsize=None)
def key_for(alg: SignatureAlgorithm) -> KeyPair:
    # RSA generation is slow; share one key per algorithm across the session
    return KeyPair.generate_for(alg, OPENSSL)


@pytest.fixture(params=sorted(BACKENDS))
def backend(request):
    return BACKENDS[request.param]


@pytest.fixture
def openssl() -> OpenSSLBackend:
    return OPENSSL
