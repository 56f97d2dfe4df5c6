#!/usr/bin/env python3
import pytest

from muschnorr import KeyPair, musig_verify, naive_aggregate, naive_verify, schnorr_sign
from muschnorr.attacks import forge_naive_aggregate, attempt_musig_forgery
from muschnorr.challenge import challenge
from muschnorr.naive import naive_aggregate_nonces, naive_aggregate_pubkeys, naive_partial_sign
from muschnorr.schnorr import Signature
from muschnorr.utils import *

MSG = hash_sha256(b'Test')


def victim_setup():
    victim = KeyPair.generate()
    r_a = random_scalar()
    return victim, r_a, point_mul(curve.G, r_a)


def test_honest_naive_aggregation():
    keypairs = [KeyPair.generate() for _ in range(3)]
    secnonces = [random_scalar() for _ in keypairs]
    R_agg = naive_aggregate_nonces([point_mul(curve.G, r) for r in secnonces])
    P_agg = naive_aggregate_pubkeys([kp.pubkey for kp in keypairs])
    sigs = [(point_mul(curve.G, r), naive_partial_sign(MSG, kp, r, R_agg, P_agg))
            for kp, r in zip(keypairs, secnonces)]
    sig = naive_aggregate(sigs, [kp.pubkey for kp in keypairs], MSG)
    assert sig.R == R_agg
    assert naive_verify(MSG, [kp.pubkey for kp in keypairs], sig)

def test_naive_aggregate_of_independent_signatures_fails():
    keypairs = [KeyPair.generate() for _ in range(2)]
    sigs = [schnorr_sign(MSG, kp.seckey) for kp in keypairs]
    with pytest.raises(ProtocolViolationError) as excinfo:
        naive_aggregate(sigs, [kp.pubkey for kp in keypairs], MSG)
    assert excinfo.value.index == 0

def test_naive_aggregate_checks_share_against_message():
    keypairs = [KeyPair.generate() for _ in range(2)]
    secnonces = [random_scalar() for _ in keypairs]
    R_agg = naive_aggregate_nonces([point_mul(curve.G, r) for r in secnonces])
    P_agg = naive_aggregate_pubkeys([kp.pubkey for kp in keypairs])
    sigs = [(point_mul(curve.G, r), naive_partial_sign(MSG, kp, r, R_agg, P_agg))
            for kp, r in zip(keypairs, secnonces)]
    with pytest.raises(ProtocolViolationError):
        naive_aggregate(sigs, [kp.pubkey for kp in keypairs], b'other message')

def test_key_cancellation_forges_naive_aggregate():
    victim, r_a, R_a = victim_setup()
    attacker = KeyPair.generate()
    rogue_pubkey, rogue_nonce, sig = forge_naive_aggregate(victim.pubkey, R_a, attacker, MSG)
    # the forgery is built from public values of the victim only
    assert naive_verify(MSG, [victim.pubkey, rogue_pubkey], sig)
    assert sig.R == naive_aggregate_nonces([R_a, rogue_nonce])
    assert naive_aggregate_pubkeys([victim.pubkey, rogue_pubkey]) == attacker.pubkey

def test_key_cancellation_fails_against_musig():
    victim, r_a, R_a = victim_setup()
    attacker = KeyPair.generate()
    combined, sig = attempt_musig_forgery(victim.pubkey, R_a, attacker, MSG)
    assert victim.pubkey in combined
    assert not musig_verify(MSG, combined, sig)
    assert combined.get_pubkey() != attacker.pubkey

def test_musig_forgery_misses_victim_share():
    victim, r_a, R_a = victim_setup()
    attacker = KeyPair.generate()
    combined, sig = attempt_musig_forgery(victim.pubkey, R_a, attacker, MSG)
    # the missing term is (a_a - a_b') * k_a * e
    rogue_pubkey = point_sub(attacker.pubkey, victim.pubkey)
    a_a = combined.coefficient(victim.pubkey)
    a_b = combined.coefficient(rogue_pubkey)
    e = challenge(sig.R, combined.get_pubkey(), MSG)
    missing = scalar_mul(scalar_mul(scalar_add(a_a, scalar_neg(a_b)), victim.seckey), e)
    assert musig_verify(MSG, combined, Signature(sig.R, scalar_add(sig.s, missing)))
