#!/usr/bin/env python3
import os

import pytest

from muschnorr.keys import KeyPair
from muschnorr.utils import *

G_UNCOMPRESSED = bytes.fromhex(
    '0479BE667EF9DCBBAC55A06295CE870B07029BFCDB2DCE28D959F2815B16F81798'
    '483ADA7726A3C4655DA4FBFC0E1108A8FD17B448A68554199C47D08FFB10D4B8')


def test_seckey_one_gives_generator():
    assert KeyPair(1).pubkey_bytes_uncompressed() == G_UNCOMPRESSED
    assert pubkey_gen(bytes_from_int(1)).hex() == \
        '0279be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798'

def test_small_multiples():
    assert pubkey_gen(2).hex() == '02c6047f9441ed7d6d3045406e95c07cd85c778e4b8cef3ca7abac09b95c709ee5'
    assert pubkey_gen(3).hex() == '02f9308a019258c31049344f85f89d5229b531c845836f99b08601f113bce036f9'

def test_group_order():
    assert point_mul(curve.G, curve.n) is None
    assert point_mul(curve.G, curve.n - 1) == point_neg(curve.G)
    assert point_add(curve.G, point_neg(curve.G)) is None
    assert point_sub(point_mul(curve.G, 5), point_mul(curve.G, 3)) == point_mul(curve.G, 2)

def test_scalar_arithmetic():
    a = random_scalar()
    assert scalar_add(a, scalar_neg(a)) == 0
    assert scalar_mul(a, scalar_inv(a)) == 1
    assert scalar_add(curve.n - 1, 2) == 1
    with pytest.raises(ZeroDivisionError):
        scalar_inv(curve.n)

def test_point_encoding():
    P = point_mul(curve.G, random_scalar())
    assert point_from_bytes(bytes_from_point(P)) == P
    assert point_from_bytes(bytes_from_point_uncompressed(P)) == P
    assert point_from_bytes(b'\x02' + b'\xff' * 32) is None
    assert point_from_bytes(b'\x05' + bytes_from_point(P)[1:]) is None
    with pytest.raises(InvalidPointError):
        bytes_from_point(None)

def test_lift_point_reports_index():
    assert lift_point(curve.G) == curve.G
    with pytest.raises(InvalidPointError) as excinfo:
        lift_point((1, 1), 4)
    assert excinfo.value.index == 4
    assert 'index: 4' in str(excinfo.value)
    assert isinstance(excinfo.value, MalformedInputError)
    assert isinstance(excinfo.value, ValueError)

def test_random_scalar_range():
    for _ in range(16):
        assert not is_secret_overflow(random_scalar())

def test_entropy_failure(monkeypatch):
    def urandom(n):
        raise OSError('no entropy')
    monkeypatch.setattr(os, 'urandom', urandom)
    with pytest.raises(EntropyError):
        random_scalar()
    with pytest.raises(EntropyError):
        KeyPair.generate()

def test_chacha20_prng_is_deterministic():
    key = hash_sha256(b'seed')
    first = chacha20_prng(key, 0)
    assert first == chacha20_prng(key, 0)
    assert first != chacha20_prng(key, 1)
    assert len(first) == 2
