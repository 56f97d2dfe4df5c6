#!/usr/bin/env python3

from .utils import (curve, point_mul, bytes_from_int, bytes_from_point, bytes_from_point_uncompressed,
                    int_from_bytes, is_secret_overflow, random_scalar, ScalarOverflowError)


class KeyPair:
    """A private scalar k and its public point P = k*G."""

    def __init__(self, seckey):
        if isinstance(seckey, (bytes, bytearray)):
            if len(seckey) != 32:
                raise ValueError('The secret key must be a 32-byte array.')
            seckey = int_from_bytes(seckey)
        if is_secret_overflow(seckey):
            raise ScalarOverflowError('The secret key must be an integer in the range 1..n-1.')
        self.__seckey = seckey
        self.__pubkey = point_mul(curve.G, seckey)

    @classmethod
    def generate(cls):
        """Draw a fresh key pair. Raises EntropyError if no secure randomness is available."""

        return cls(random_scalar())

    @classmethod
    def from_seckey(cls, seckey):
        return cls(seckey)

    @classmethod
    def from_bytes(cls, seckey32):
        """Load a key pair from a 32-byte big endian secret key."""

        if not isinstance(seckey32, (bytes, bytearray)):
            raise TypeError('The secret key must be bytes.')
        return cls(bytes(seckey32))

    @property
    def seckey(self):
        return self.__seckey

    @property
    def pubkey(self):
        return self.__pubkey

    def seckey_bytes(self):
        return bytes_from_int(self.__seckey)

    def pubkey_bytes(self):
        return bytes_from_point(self.__pubkey)

    def pubkey_bytes_uncompressed(self):
        return bytes_from_point_uncompressed(self.__pubkey)

    def __eq__(self, other):
        return isinstance(other, KeyPair) and self.__seckey == other.__seckey

    def __hash__(self):
        return hash(self.__pubkey)

    def __repr__(self):
        return 'KeyPair(pubkey={})'.format(self.pubkey_bytes().hex())
