#!/usr/bin/env python3
"""
Naive linear aggregation of Schnorr signatures.

!!! INSECURE. P_agg = P_1 + ... + P_n lets the last signer to publish a key pick
P_b' = P_b - P_a and sign alone for the aggregate. See attacks.forge_naive_aggregate. !!!
"""
from .challenge import challenge
from .schnorr import Signature, schnorr_verify
from .utils import *


def naive_aggregate_pubkeys(pubkeys):
    """P_agg = P_1 + P_2 + ... + P_n"""

    if len(pubkeys) == 0:
        raise ValueError('At least one public key is needed.')
    P = point_sum(lift_point(pubkeys[i], i) for i in range(len(pubkeys)))
    if is_infinity(P):
        raise InvalidPointError('The aggregated public key is the point at infinity.')
    return P

def naive_aggregate_nonces(nonces):
    """R_agg = R_1 + R_2 + ... + R_n"""

    if len(nonces) == 0:
        raise ValueError('At least one nonce is needed.')
    R = point_sum(lift_point(nonces[i], i) for i in range(len(nonces)))
    if is_infinity(R):
        raise InvalidPointError('The aggregated nonce is the point at infinity.')
    return R

def naive_partial_sign(msg, keypair, nonce, R_agg, P_agg):
    """s_i = r_i + k_i * H(R_agg, P_agg, m)"""

    if is_secret_overflow(nonce):
        raise ScalarOverflowError('The nonce must be an integer in the range 1..n-1.')
    e = challenge(R_agg, P_agg, msg)
    return scalar_add(nonce, scalar_mul(keypair.seckey, e))

def naive_aggregate(sigs, pubkeys, msg):
    """
    Combine per-signer signatures (R_i, s_i) into (R_agg, s_agg).

    Every share must satisfy s_i*G == R_i + e*P_i with the common challenge
    e = H(R_agg, P_agg, m), otherwise ProtocolViolationError names the signer.
    """

    if len(sigs) != len(pubkeys):
        raise ValueError('The number of signatures is not equal the number of public keys.')
    R_agg = naive_aggregate_nonces([R for R, _ in sigs])
    P_agg = naive_aggregate_pubkeys(pubkeys)
    e = challenge(R_agg, P_agg, msg)
    s_agg = 0
    for i, (R_i, s) in enumerate(sigs):
        if is_scalar_overflow(s):
            raise ScalarOverflowError('The signature is outside of the group order.', i)
        P_i = lift_point(pubkeys[i], i)
        if point_mul(curve.G, s) != point_add(lift_point(R_i, i), point_mul(P_i, e)):
            raise ProtocolViolationError('The partial signature does not match the common challenge.', i)
        s_agg = scalar_add(s_agg, s)
    return Signature(R_agg, s_agg)

def naive_verify(msg, pubkeys, sig):
    """Single signer verification against P_agg = sum(P_i)."""

    try:
        P_agg = naive_aggregate_pubkeys(pubkeys)
    except MalformedInputError:
        return False
    return schnorr_verify(msg, P_agg, sig)
