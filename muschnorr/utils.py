#!/usr/bin/env python3

import collections
import hashlib
import os
from chacha20poly1305 import ChaCha

EllipticCurve = collections.namedtuple('EllipticCurve', 'name p G n h')

curve = EllipticCurve(
    'secp256k1',
    # Field characteristic.
    p=0xfffffffffffffffffffffffffffffffffffffffffffffffffffffffefffffc2f,
    # Base point.
    G=(0x79be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798,
       0x483ada7726a3c4655da4fbfc0e1108a8fd17b448a68554199c47d08ffb10d4b8),
    # Subgroup order.
    n=0xfffffffffffffffffffffffffffffffebaaedce6af48a03bbfd25e8cd0364141,
    # Subgroup cofactor.
    h=1,
)


class MalformedInputError(ValueError):
    """A scalar or point failed a range or curve membership check."""

    def __init__(self, message, index=None):
        if index is not None:
            message = '{} index: {}'.format(message, index)
        super().__init__(message)
        self.index = index

class ScalarOverflowError(MalformedInputError):
    pass

class InvalidPointError(MalformedInputError):
    pass

class ProtocolViolationError(RuntimeError):
    """The session was used out of order or its participants changed. Restart from key collection."""

    def __init__(self, message, index=None):
        if index is not None:
            message = '{} index: {}'.format(message, index)
        super().__init__(message)
        self.index = index

class CommitmentVerifyError(ProtocolViolationError):
    pass

class EntropyError(RuntimeError):
    pass


def x(P):
    return P[0]

def y(P):
    return P[1]

def generator():
    return curve.G

def is_infinity(P):
    return P is None

def is_on_curve(P):
    if is_infinity(P):
        return False
    if not (0 <= x(P) < curve.p and 0 <= y(P) < curve.p):
        return False
    return (pow(y(P), 2, curve.p) - pow(x(P), 3, curve.p) - 7) % curve.p == 0

def point_add(P1, P2):
    if (P1 is None):
        return P2
    if (P2 is None):
        return P1
    if (P1[0] == P2[0] and P1[1] != P2[1]):
        return None
    if (P1 == P2):
        lam = (3 * P1[0] * P1[0] * pow(2 * P1[1], curve.p - 2, curve.p)) % curve.p
    else:
        lam = ((P2[1] - P1[1]) * pow(P2[0] - P1[0], curve.p - 2, curve.p)) % curve.p
    x3 = (lam * lam - P1[0] - P2[0]) % curve.p
    return (x3, (lam * (P1[0] - x3) - P1[1]) % curve.p)

def point_neg(P):
    if is_infinity(P):
        return None
    return (x(P), (curve.p - y(P)) % curve.p)

def point_sub(P1, P2):
    return point_add(P1, point_neg(P2))

def point_mul(P, n):
    R = None
    for i in range(256):
        if ((n >> i) & 1):
            R = point_add(R, P)
        P = point_add(P, P)
    return R

def point_sum(points):
    S = None
    for P in points:
        S = point_add(S, P)
    return S

def scalar_add(a, b):
    return (a + b) % curve.n

def scalar_mul(a, b):
    return (a * b) % curve.n

def scalar_neg(a):
    return (curve.n - a) % curve.n

def scalar_inv(a):
    if a % curve.n == 0:
        raise ZeroDivisionError('Zero has no inverse modulo the group order.')
    return pow(a, curve.n - 2, curve.n)

def is_secret_overflow(x):
    return not (1 <= x <= curve.n - 1)

def is_scalar_overflow(x):
    return not (0 <= x < curve.n)


def bytes_from_int(x):
    return x.to_bytes(32, byteorder="big")

def int_from_bytes(b):
    return int.from_bytes(b, byteorder="big")

def has_even_y(P) -> bool:
    assert not is_infinity(P)
    return y(P) % 2 == 0

def bytes_from_point(P):
    """Compressed 33-byte encoding. This is the canonical form for hashing and key ordering."""

    if is_infinity(P):
        raise InvalidPointError('The point at infinity has no encoding.')
    return (b'\x02' if has_even_y(P) else b'\x03') + bytes_from_int(x(P))

def bytes_from_point_uncompressed(P):
    if is_infinity(P):
        raise InvalidPointError('The point at infinity has no encoding.')
    return b'\x04' + bytes_from_int(x(P)) + bytes_from_int(y(P))

def point_from_bytes(b):
    """Parse a compressed or uncompressed SEC1 point. Returns None if it is not on the curve."""

    if len(b) == 65 and b[0] == 4:
        P = (int_from_bytes(b[1:33]), int_from_bytes(b[33:]))
        return P if is_on_curve(P) else None
    if len(b) != 33 or b[0] not in (2, 3):
        return None
    x = int_from_bytes(b[1:])
    if x >= curve.p:
        return None
    y_sq = (pow(x, 3, curve.p) + 7) % curve.p
    y = pow(y_sq, (curve.p + 1) // 4, curve.p)
    if pow(y, 2, curve.p) != y_sq:
        return None
    if (y & 1) != (b[0] & 1):
        y = curve.p - y
    return (x, y)

def lift_point(P, index=None):
    """Accept a point tuple or its serialization and return a validated point tuple."""

    if isinstance(P, (bytes, bytearray)):
        Q = point_from_bytes(bytes(P))
    elif isinstance(P, tuple) and len(P) == 2:
        Q = P if is_on_curve(P) else None
    else:
        Q = None
    if Q is None:
        raise InvalidPointError('Received an invalid curve point.', index)
    return Q


def hash_sha256(b):
    return hashlib.sha256(b).digest()

def tagged_hash(tag, msg, digest=hashlib.sha256):
    tag_hash = digest(tag.encode()).digest()
    return digest(tag_hash + tag_hash + msg).digest()


def random_bytes(n=32):
    try:
        return os.urandom(n)
    except (OSError, NotImplementedError) as e:
        raise EntropyError('No secure randomness available.') from e

def random_scalar():
    """Draw a scalar uniformly from 1..n-1."""

    while True:
        k = int_from_bytes(random_bytes(32))
        if not is_secret_overflow(k):
            return k

def chacha20_prng(key, counter):
    nonce = bytes(12)
    chacha20 = ChaCha(key, nonce)
    key_stream = chacha20.key_stream(counter)
    r1 = int_from_bytes(key_stream[:32])
    r2 = int_from_bytes(key_stream[32:])
    if is_secret_overflow(r1):
        raise ScalarOverflowError('r1 outside of the group order.')
    if is_secret_overflow(r2):
        raise ScalarOverflowError('r2 outside of the group order.')
    return [r1, r2]

def pubkey_gen(seckey):
    x = int_from_bytes(seckey) if isinstance(seckey, (bytes, bytearray)) else seckey
    if is_secret_overflow(x):
        raise ScalarOverflowError('Secret key outside of the group order.')
    P = point_mul(curve.G, x)
    return bytes_from_point(P)
