#!/usr/bin/env python3
"""
Hashing of public protocol values to scalars.

Each part is serialized to a fixed or self-delimiting form before hashing:
 * int    -> 32 byte big endian scalar
 * point  -> 33 byte compressed point
 * bytes  -> 8 byte big endian length followed by the raw bytes
"""
import hashlib

from .utils import curve, bytes_from_int, bytes_from_point, int_from_bytes, tagged_hash


def serialize_part(part):
    if isinstance(part, bool):
        raise TypeError('Cannot hash a boolean.')
    if isinstance(part, int):
        return bytes_from_int(part % curve.n)
    if isinstance(part, tuple):
        return bytes_from_point(part)
    if isinstance(part, (bytes, bytearray)):
        return len(part).to_bytes(8, byteorder="big") + bytes(part)
    raise TypeError('Cannot hash a value of type {}.'.format(type(part).__name__))


class ChallengeHash:
    """
    A tagged random oracle H_tag(part_1, ..., part_k) -> scalar mod n.

    The digest function is pluggable; it must follow the hashlib constructor interface.
    """

    def __init__(self, tag, digest=hashlib.sha256):
        self.tag = tag
        self.digest = digest

    def hash_bytes(self, *parts):
        return tagged_hash(self.tag, b''.join(serialize_part(p) for p in parts), self.digest)

    def __call__(self, *parts):
        return int_from_bytes(self.hash_bytes(*parts)) % curve.n

    def __repr__(self):
        return 'ChallengeHash({!r})'.format(self.tag)


challenge_hash = ChallengeHash('Schnorr/challenge')
keyagg_list_hash = ChallengeHash('KeyAgg list')
keyagg_coef_hash = ChallengeHash('KeyAgg coefficient')
nonce_commitment_hash = ChallengeHash('MuSig/noncecommit')
batch_seed_hash = ChallengeHash('Schnorr/batch')


def challenge(*parts):
    """e = H(R, P, m)"""

    return challenge_hash(*parts)
