#!/usr/bin/env python3
import hashlib

import pytest

from muschnorr.challenge import ChallengeHash, challenge, keyagg_list_hash
from muschnorr.utils import curve, point_mul


def test_challenge_is_deterministic():
    R = point_mul(curve.G, 7)
    P = point_mul(curve.G, 11)
    e = challenge(R, P, b'msg')
    assert e == challenge(R, P, b'msg')
    assert 0 <= e < curve.n

def test_challenge_binds_every_part():
    R = point_mul(curve.G, 7)
    P = point_mul(curve.G, 11)
    e = challenge(R, P, b'msg')
    assert e != challenge(P, R, b'msg')
    assert e != challenge(R, P, b'msh')
    assert e != challenge(R, point_mul(curve.G, 12), b'msg')

def test_bytes_parts_are_length_prefixed():
    assert challenge(b'ab', b'c') != challenge(b'a', b'bc')

def test_tags_separate_domains():
    assert challenge(curve.G) != keyagg_list_hash(curve.G)

def test_pluggable_digest():
    sha3 = ChallengeHash('Schnorr/challenge', hashlib.sha3_256)
    value = sha3(curve.G, b'msg')
    assert 0 <= value < curve.n
    assert value != challenge(curve.G, b'msg')

def test_rejects_unknown_types():
    with pytest.raises(TypeError):
        challenge(1.5)
    with pytest.raises(TypeError):
        challenge(True)
