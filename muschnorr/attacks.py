#!/usr/bin/env python3
"""
Reproducible attacks on misused Schnorr signatures.

 * nonce reuse: two signatures with the same r reveal the secret key
 * key cancellation: a rogue key P_b' = P_b - P_a makes naive aggregation single-signer,
   the same trick against MuSig leaves an unknown multiple of k_a in the equation
"""
from .challenge import challenge
from .musig import CombinedPubkey
from .naive import naive_aggregate_pubkeys, naive_aggregate_nonces
from .schnorr import Signature
from .utils import *


def recover_seckey_from_nonce_reuse(pubkey, msg1, sig1, msg2, sig2):
    """
    Compute k = (s1 - s2) / (e1 - e2) from two signatures sharing R.

    s1 - s2 = (r + k*e1) - (r + k*e2) = k * (e1 - e2)
    """

    P = lift_point(pubkey)
    R1, s1 = sig1
    R2, s2 = sig2
    if R1 != R2:
        raise ValueError('The signatures do not share a nonce.')
    e1 = challenge(R1, P, msg1)
    e2 = challenge(R2, P, msg2)
    if e1 == e2:
        raise ValueError('The signatures have the same challenge.')
    k = scalar_mul((s1 - s2) % curve.n, scalar_inv((e1 - e2) % curve.n))
    if point_mul(curve.G, k) != P:
        raise ValueError('The recovered key does not match the public key.')
    return k


def forge_naive_aggregate(victim_pubkey, victim_nonce, attacker, msg):
    """
    Forge a two party naive aggregate signature without the victim's secret key.

    The attacker waits for (R_a, P_a), then publishes P_b' = P_b - P_a and R_b' = R_b - R_a.
    The aggregates collapse to P_b and R_b, so s = r_b + k_b*e is a valid aggregate signature.
    Returns (rogue_pubkey, rogue_nonce, signature).
    """

    P_a = lift_point(victim_pubkey)
    R_a = lift_point(victim_nonce)
    r_b = random_scalar()
    R_b = point_mul(curve.G, r_b)
    rogue_pubkey = point_sub(attacker.pubkey, P_a)
    rogue_nonce = point_sub(R_b, R_a)

    P_agg = naive_aggregate_pubkeys([P_a, rogue_pubkey])
    R_agg = naive_aggregate_nonces([R_a, rogue_nonce])
    e = challenge(R_agg, P_agg, msg)
    return rogue_pubkey, rogue_nonce, Signature(R_agg, scalar_add(r_b, scalar_mul(attacker.seckey, e)))


def attempt_musig_forgery(victim_pubkey, victim_nonce, attacker, msg):
    """
    Try the key cancellation trick against MuSig key aggregation.

    X = a_a*P_a + a_b'*(P_b - P_a) = (a_a - a_b')*P_a + a_b'*P_b.
    The attacker can only supply r_b + a_b'*k_b*e; the (a_a - a_b')*k_a*e term stays missing.
    Returns (combined, signature); the signature does not verify.
    """

    P_a = lift_point(victim_pubkey)
    R_a = lift_point(victim_nonce)
    r_b = random_scalar()
    R_b = point_mul(curve.G, r_b)
    rogue_pubkey = point_sub(attacker.pubkey, P_a)
    rogue_nonce = point_sub(R_b, R_a)

    combined = CombinedPubkey([P_a, rogue_pubkey])
    R = point_add(R_a, rogue_nonce)
    e = challenge(R, combined.get_pubkey(), msg)
    a_b = combined.coefficient(rogue_pubkey)
    s = scalar_add(r_b, scalar_mul(scalar_mul(a_b, attacker.seckey), e))
    return combined, Signature(R, s)
