#!/usr/bin/env python3

import collections

from .challenge import challenge, batch_seed_hash
from .utils import *


class Signature(collections.namedtuple('Signature', 'R s')):
    """A Schnorr signature (R, s), for a single signer or an aggregate."""

    __slots__ = ()

    def to_bytes(self):
        """Serialize as 33-byte compressed R followed by 32-byte s."""

        return bytes_from_point(self.R) + bytes_from_int(self.s)

    @classmethod
    def from_bytes(cls, b):
        if len(b) != 65:
            raise MalformedInputError('The signature must be a 65-byte array.')
        R = point_from_bytes(b[:33])
        if R is None:
            raise InvalidPointError('The signature nonce R is not a valid curve point.')
        s = int_from_bytes(b[33:])
        if is_scalar_overflow(s):
            raise ScalarOverflowError('The signature scalar s is outside of the group order.')
        return cls(R, s)


def _seckey_int(seckey):
    if isinstance(seckey, (bytes, bytearray)):
        if len(seckey) != 32:
            raise ValueError('The secret key must be a 32-byte array.')
        seckey = int_from_bytes(seckey)
    if is_secret_overflow(seckey):
        raise ScalarOverflowError('The secret key must be an integer in the range 1..n-1.')
    return seckey

def schnorr_sign_with_nonce(msg, seckey, nonce, pubkey=None):
    """
    Sign with a caller supplied nonce r.

    Reusing r for two different messages reveals the secret key.
    Only use this to reproduce that failure; use schnorr_sign otherwise.
    """

    seckey = _seckey_int(seckey)
    if is_secret_overflow(nonce):
        raise ScalarOverflowError('The nonce must be an integer in the range 1..n-1.')
    P = point_mul(curve.G, seckey)
    if pubkey is not None and lift_point(pubkey) != P:
        raise ValueError('The public key does not belong to the secret key.')
    R = point_mul(curve.G, nonce)
    e = challenge(R, P, msg)
    return Signature(R, scalar_add(nonce, scalar_mul(seckey, e)))

def schnorr_sign(msg, seckey, pubkey=None):
    """Sign a message with a secret key and a fresh random nonce."""

    if not isinstance(msg, (bytes, bytearray)):
        raise TypeError('The message must be bytes.')
    return schnorr_sign_with_nonce(msg, seckey, random_scalar(), pubkey)


def _parse_sig(sig):
    if isinstance(sig, (bytes, bytearray)):
        return Signature.from_bytes(sig)
    R, s = sig
    if not is_on_curve(R):
        raise InvalidPointError('The signature nonce R is not a valid curve point.')
    if is_scalar_overflow(s):
        raise ScalarOverflowError('The signature scalar s is outside of the group order.')
    return Signature(R, s)

def schnorr_verify(msg, pubkey, sig):
    """Verify that s*G == R + e*P. Malformed input is reported as an invalid signature."""

    try:
        P = lift_point(pubkey)
        R, s = _parse_sig(sig)
    except (MalformedInputError, TypeError, ValueError):
        return False
    e = challenge(R, P, msg)
    return point_mul(curve.G, s) == point_add(R, point_mul(P, e))


def schnorr_batch_verify(msgs, pubkeys, sigs):
    """
    Verify a list of messages with a list of public keys at once.

    Checks (a_0*s_0 + ... + a_u*s_u)*G == sum(a_i*R_i + a_i*e_i*P_i) where a_0 = 1
    and the other a_i come from a ChaCha20 stream seeded with all inputs.
    """

    sig_num = len(msgs)
    if (sig_num != len(pubkeys) or sig_num != len(sigs)):
        raise ValueError('The count of Values must be equally.')
    parsed = []
    try:
        for i in range(sig_num):
            parsed.append((lift_point(pubkeys[i], i), _parse_sig(sigs[i])))
    except (MalformedInputError, TypeError, ValueError):
        return False

    seed_parts = []
    for (P, (R, s)), msg in zip(parsed, msgs):
        seed_parts += [R, s, P, msg]
    seed = batch_seed_hash.hash_bytes(*seed_parts)

    rand_coefficient = [1]
    s_sum = 0
    RP = None
    for i in range(sig_num):
        P, (R, s) = parsed[i]
        if (i % 2 == 1):
            rand_coefficient = chacha20_prng(seed, i // 2)
        a = rand_coefficient[i % 2]
        e = challenge(R, P, msgs[i])
        s_sum = (s_sum + a * s) % curve.n
        eP = point_mul(P, (a * e) % curve.n)
        aR = point_mul(R, a)
        RP = point_add(point_add(aR, eP), RP)
    return point_mul(curve.G, s_sum) == RP
