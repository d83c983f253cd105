import hashlib

import pytest
from hypothesis import given, settings, strategies as st

from lottery.commit_reveal import (CommitmentPair, bind_commitment,
                                   build_commitment_pair, iterate_hash,
                                   secret_from_text)
from lottery.errors import OutOfResources
from lottery.utils.hash import get_hash_fn, keccak256, sha3_256

SECRETS = st.binary(min_size=32, max_size=32)
SMALL_N = st.integers(min_value=1, max_value=64)

KECCAK_EMPTY = "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
SHA3_EMPTY = "a7ffc6f8bf1ed76651c14756a061d662f580ff4de43b49fa82d80a4b80f8434a"

# secret = keccak256(b"secret"), N = 12
WORKED_SECRET = "65462b0520ef7d3df61b9992ed3bea0c56ead753be7c8b3614e0ce01e4cac41b"
WORKED_SALT_HASH = "07358571c7e354539e12c3e1965cae5c94fa39eb2e90891f6f3001a38ecb37a5"
WORKED_SALT_N_HASH = "6d3e9c81af68a0d6f15c9b955a79564f8dda24daa8b12803e7ad15cd8347e19d"


def _chain(secret: bytes, n: int, h=keccak256) -> bytes:
    d = h(secret)
    for _ in range(n - 1):
        d = h(d)
    return d


def test_hash_primitives_known_vectors():
    assert keccak256(b"").hex() == KECCAK_EMPTY
    assert sha3_256(b"").hex() == SHA3_EMPTY
    assert sha3_256(b"abc") == hashlib.sha3_256(b"abc").digest()
    # Keccak and FIPS SHA3 differ only in padding, but that changes every digest.
    assert keccak256(b"") != sha3_256(b"")


def test_unknown_hash_name_rejected():
    with pytest.raises(ValueError):
        get_hash_fn("md5")


def test_worked_example_secret_and_n12():
    secret = secret_from_text("secret")
    assert secret.hex() == WORKED_SECRET

    pair = build_commitment_pair(secret, 12)
    assert pair.salt_hash.hex() == WORKED_SALT_HASH
    assert pair.salt_n_hash.hex() == WORKED_SALT_N_HASH
    assert pair.salt_hash == _chain(secret, 12)
    assert pair.salt_n_hash == keccak256(secret + (12).to_bytes(8, "big") + secret)


def test_single_iteration_is_plain_hash(secret):
    assert iterate_hash(secret, 1) == keccak256(secret)


def test_chain_extends_by_rehashing_digest(secret):
    for n in (1, 2, 5, 12):
        assert iterate_hash(secret, n + 1) == keccak256(iterate_hash(secret, n))


def test_sha3_variant(secret):
    got = iterate_hash(secret, 3, hash_fn="sha3_256")
    assert got == _chain(secret, 3, h=sha3_256)
    assert got != iterate_hash(secret, 3)
    assert bind_commitment(secret, 3, hash_fn="sha3_256") == sha3_256(
        secret + (3).to_bytes(8, "big") + secret
    )


@pytest.mark.parametrize("bad_n", [0, -1])
def test_non_positive_n_rejected(secret, bad_n):
    with pytest.raises(ValueError):
        iterate_hash(secret, bad_n)
    with pytest.raises(ValueError):
        bind_commitment(secret, bad_n)


def test_n_type_checked(secret):
    with pytest.raises(TypeError):
        iterate_hash(secret, True)
    with pytest.raises(TypeError):
        bind_commitment(secret, "12")


def test_n_must_fit_64_bits(secret):
    with pytest.raises(ValueError):
        bind_commitment(secret, 1 << 64)
    # largest encodable value is accepted by the binding commitment
    assert len(bind_commitment(secret, (1 << 64) - 1)) == 32


def test_chain_length_guard(secret):
    with pytest.raises(OutOfResources) as ei:
        iterate_hash(secret, 11, max_iterations=10)
    assert ei.value.code == "OUT_OF_RESOURCES"
    assert ei.value.data == {"needed": 11, "available": 10}
    assert iterate_hash(secret, 10, max_iterations=10) == _chain(secret, 10)


@pytest.mark.parametrize("bad", [b"", b"\x00" * 31, b"\x00" * 33])
def test_secret_must_be_32_bytes(bad):
    with pytest.raises(ValueError):
        iterate_hash(bad, 1)
    with pytest.raises(ValueError):
        bind_commitment(bad, 1)


def test_secret_from_text_requires_str():
    with pytest.raises(TypeError):
        secret_from_text(b"secret")


def test_commitment_pair_validates_widths():
    with pytest.raises(ValueError):
        CommitmentPair(salt_hash=b"\x00" * 31, salt_n_hash=b"\x00" * 32)
    pair = CommitmentPair(salt_hash=b"\x11" * 32, salt_n_hash=b"\x22" * 32)
    assert pair.to_dict() == {"saltHash": "0x" + "11" * 32, "saltNHash": "0x" + "22" * 32}


# -----------------------------------------------------------------------------
# Properties
# -----------------------------------------------------------------------------


@settings(max_examples=50, deadline=None)
@given(secret=SECRETS, n=SMALL_N)
def test_iterate_hash_is_deterministic(secret, n):
    assert iterate_hash(secret, n) == iterate_hash(bytearray(secret), n)
    assert iterate_hash(secret, n) == _chain(secret, n)


@settings(max_examples=50, deadline=None)
@given(secret=SECRETS, n=SMALL_N, m=SMALL_N)
def test_binding_separates_chain_lengths(secret, n, m):
    if n != m:
        assert bind_commitment(secret, n) != bind_commitment(secret, m)
    else:
        assert bind_commitment(secret, n) == bind_commitment(secret, m)


@settings(max_examples=50, deadline=None)
@given(a=SECRETS, b=SECRETS, n=SMALL_N)
def test_binding_separates_secrets(a, b, n):
    if a != b:
        assert bind_commitment(a, n) != bind_commitment(b, n)
        assert iterate_hash(a, n) != iterate_hash(b, n)
