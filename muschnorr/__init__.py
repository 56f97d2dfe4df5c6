"""
Schnorr signatures and MuSig multi-signatures for Python

Single signer Schnorr signatures over secp256k1, an insecure naive aggregation
kept to reproduce the key cancellation attack, and the MuSig key aggregation
and signing session that prevents it.
Paper: https://eprint.iacr.org/2018/068
"""
from .keys import KeyPair
from .challenge import ChallengeHash, challenge
from .schnorr import Signature, schnorr_sign, schnorr_verify, schnorr_batch_verify
from .naive import naive_aggregate, naive_aggregate_pubkeys, naive_verify
from .musig import CombinedPubkey, MuSigSession, Stage, musig_verify, run_session, sort_pubkeys
from .utils import (MalformedInputError, ScalarOverflowError, InvalidPointError,
                    ProtocolViolationError, CommitmentVerifyError, EntropyError)

from .version import __version__
