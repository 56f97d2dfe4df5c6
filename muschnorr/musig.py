#!/usr/bin/env python3
import collections
import enum
import logging
import queue

from .challenge import challenge, keyagg_list_hash, keyagg_coef_hash, nonce_commitment_hash
from .schnorr import Signature, schnorr_verify
from .utils import *

logger = logging.getLogger(__name__)

NonceCommitmentMessage = collections.namedtuple('NonceCommitmentMessage', 'pubkey commitment')
NonceMessage = collections.namedtuple('NonceMessage', 'pubkey R')
PartialSigMessage = collections.namedtuple('PartialSigMessage', 'pubkey s')


class Stage(enum.IntEnum):
    INIT = 0
    KEY_COLLECTION = 1
    NONCE_COLLECTION = 2
    CHALLENGE = 3
    PARTIAL_SIGN = 4
    COMBINE = 5
    DONE = 6
    ABORTED = 7


def sort_pubkeys(pubkeys):
    """
    Bring public keys into the canonical session order.

    The order is ascending lexicographic order of the 33-byte compressed encoding.
    Every participant must use this order, otherwise ell and all coefficients differ.
    """

    encoded = []
    for i in range(len(pubkeys)):
        encoded.append(bytes_from_point(lift_point(pubkeys[i], i)))
    seen = set()
    for i, pk in enumerate(encoded):
        if pk in seen:
            raise ProtocolViolationError('The public key appears twice in the participant set.', i)
        seen.add(pk)
    return sorted(encoded)


class CombinedPubkey:
    """
    This class represents a combined public key for all participating signers.

    Compute X = (a[0]*X[0]) + (a[1]*X[1]) + ... + (a[n]*X[n]) with
    ell = H(X[0], ..., X[n]) over the sorted keys and a[i] = H(ell, X[i]).
    """

    @staticmethod
    def hash_keys(sorted_pubkeys):
        """Computes ell = H(pk[0], ..., pk[np-1])"""

        return keyagg_list_hash(*[point_from_bytes(pk) for pk in sorted_pubkeys])

    @staticmethod
    def key_agg_coefficient(ell, pubkey):
        """Compute a = H(ell, pk)."""

        return keyagg_coef_hash(ell, lift_point(pubkey))

    def __init__(self, pubkeys):
        if len(pubkeys) == 0:
            raise ValueError('Amount of signers is 0.')
        self.__pubkeys = sort_pubkeys(pubkeys)
        self.__ell = CombinedPubkey.hash_keys(self.__pubkeys)
        self.__coefficients = collections.OrderedDict()
        X = None
        for pk in self.__pubkeys:
            coefficient = CombinedPubkey.key_agg_coefficient(self.__ell, pk)
            self.__coefficients[pk] = coefficient
            X = point_add(X, point_mul(point_from_bytes(pk), coefficient))
        if is_infinity(X):
            raise InvalidPointError('The combined public key is the point at infinity.')
        self.__combined_pk = X

    @property
    def ell(self):
        return self.__ell

    @property
    def pubkeys(self):
        """The participant keys in canonical order."""

        return list(self.__pubkeys)

    def coefficients(self):
        return list(self.__coefficients.values())

    def coefficient(self, pubkey):
        pk = bytes_from_point(lift_point(pubkey))
        if pk not in self.__coefficients:
            raise ProtocolViolationError('The public key is not part of this session.')
        return self.__coefficients[pk]

    def __contains__(self, pubkey):
        try:
            return bytes_from_point(lift_point(pubkey)) in self.__coefficients
        except MalformedInputError:
            return False

    def __len__(self):
        return len(self.__pubkeys)

    @property
    def pubkey(self):
        """The combined public key X."""

        return self.__combined_pk

    def get_pubkey(self):
        """Return the combined public key."""

        return self.__combined_pk

    def get_pubkey_bytes(self):
        return bytes_from_point(self.__combined_pk)

    def __str__(self):
        return 'combined public key: {}'.format(self.get_pubkey_bytes().hex())


def musig_verify(msg, combined, sig):
    """Verify an aggregate signature: s*G == R + e*X."""

    X = combined.get_pubkey() if isinstance(combined, CombinedPubkey) else combined
    return schnorr_verify(msg, X, sig)


class MuSigSession:
    """
    One signer's view of a MuSig signing session.

    Stages only move forward:
    KEY_COLLECTION -> NONCE_COLLECTION -> CHALLENGE -> PARTIAL_SIGN -> COMBINE -> DONE.
    Any failure moves the session to ABORTED and wipes the secret nonce.
    An aborted session can not be resumed, start a new one from key collection.
    """

    def __init__(self, keypair, combined, msg, require_commitments=False):
        self.__stage = Stage.INIT
        if not isinstance(msg, (bytes, bytearray)):
            raise TypeError('The message must be bytes.')
        if keypair.pubkey not in combined:
            raise ProtocolViolationError('The own public key is not part of the participant set.')
        self.__keypair = keypair
        self.__combined = combined
        self.__msg = bytes(msg)
        self.__require_commitments = require_commitments
        self.__own_pk = keypair.pubkey_bytes()
        self.__coefficient = combined.coefficient(self.__own_pk)
        self.__secnonce = None
        self.__pubnonce = None
        self.__commitments = None
        self.__nonces = None
        self.__fin_nonce = None
        self.__challenge = None
        self.__set_stage(Stage.KEY_COLLECTION)

    @property
    def stage(self):
        return self.__stage

    @property
    def pubkey(self):
        return self.__own_pk

    @property
    def combined(self):
        return self.__combined

    @property
    def final_nonce(self):
        return self.__fin_nonce

    @property
    def challenge(self):
        return self.__challenge

    def __set_stage(self, stage):
        logger.debug('session %s: %s -> %s', self.__own_pk.hex()[:16], self.__stage.name, stage.name)
        self.__stage = stage

    def __require(self, *stages):
        if self.__stage == Stage.ABORTED:
            raise ProtocolViolationError('The session was aborted. Restart from key collection.')
        if self.__stage == Stage.DONE:
            raise ProtocolViolationError('The session is finished.')
        if self.__stage not in stages:
            raise self.__fail(ProtocolViolationError(
                'Operation not allowed in stage {}.'.format(self.__stage.name)))

    def abort(self, reason=None):
        """Abandon the session. Nonces and derived values are discarded and never reused."""

        if self.__stage != Stage.ABORTED:
            logger.warning('session %s aborted in stage %s: %s',
                           self.__own_pk.hex()[:16], self.__stage.name, reason)
        self.__secnonce = None
        self.__pubnonce = None
        self.__commitments = None
        self.__nonces = None
        self.__fin_nonce = None
        self.__challenge = None
        self.__stage = Stage.ABORTED

    def __fail(self, error):
        self.abort(str(error))
        return error

    def __check_participants(self, messages, what):
        """Every participant exactly once, and nobody else."""

        expected = set(self.__combined.pubkeys)
        received = []
        for i, message in enumerate(messages):
            try:
                pk = bytes_from_point(lift_point(message.pubkey, i))
            except MalformedInputError as e:
                raise self.__fail(e)
            if pk not in expected:
                raise self.__fail(ProtocolViolationError(
                    'The participant set changed: unknown signer sent a {}.'.format(what), i))
            if pk in received:
                raise self.__fail(ProtocolViolationError('Received a second {}.'.format(what), i))
            received.append(pk)
        if len(received) != len(expected):
            raise self.__fail(ProtocolViolationError(
                'Missing {} from {} participant(s).'.format(what, len(expected) - len(received))))
        return received

    def create_nonce(self):
        """Draw the secret nonce r_i and return the public nonce R_i = r_i*G for round 1."""

        self.__require(Stage.KEY_COLLECTION)
        self.__secnonce = random_scalar()
        self.__pubnonce = point_mul(curve.G, self.__secnonce)
        self.__set_stage(Stage.NONCE_COLLECTION)
        return NonceMessage(self.__own_pk, self.__pubnonce)

    def get_nonce_commitment(self):
        """Return H(R_i), to be exchanged before the public nonces are revealed."""

        self.__require(Stage.NONCE_COLLECTION)
        return NonceCommitmentMessage(self.__own_pk, nonce_commitment_hash.hash_bytes(self.__pubnonce))

    def set_nonce_commitments(self, messages):
        """Receive the nonce commitments of all signers."""

        self.__require(Stage.NONCE_COLLECTION)
        if self.__commitments is not None or self.__nonces is not None:
            raise self.__fail(ProtocolViolationError('The nonce commitments were already set.'))
        signers = self.__check_participants(messages, 'nonce commitment')
        commitments = {}
        for i, (pk, message) in enumerate(zip(signers, messages)):
            if len(message.commitment) != 32:
                raise self.__fail(MalformedInputError('The nonce commitment must be a 32-byte array.', i))
            commitments[pk] = bytes(message.commitment)
        if commitments[self.__own_pk] != nonce_commitment_hash.hash_bytes(self.__pubnonce):
            raise self.__fail(CommitmentVerifyError('The own nonce commitment was altered.'))
        self.__commitments = commitments

    def set_nonces(self, messages):
        """
        Receive the public nonces of all signers and compute R = R[0] + ... + R[n].

        This is the round 1 barrier: it only succeeds with a nonce from every participant.
        """

        self.__require(Stage.NONCE_COLLECTION)
        if self.__nonces is not None:
            raise self.__fail(ProtocolViolationError('The public nonces were already set.'))
        if self.__require_commitments and self.__commitments is None:
            raise self.__fail(ProtocolViolationError('The nonce commitments must be known before the nonces.'))
        signers = self.__check_participants(messages, 'nonce')
        nonces = {}
        for i, (pk, message) in enumerate(zip(signers, messages)):
            try:
                R_i = lift_point(message.R, i)
            except MalformedInputError as e:
                raise self.__fail(e)
            if self.__commitments is not None and \
                    self.__commitments[pk] != nonce_commitment_hash.hash_bytes(R_i):
                raise self.__fail(CommitmentVerifyError(
                    'The nonce doesn\'t match the commitment.', i))
            nonces[pk] = R_i
        if nonces[self.__own_pk] != self.__pubnonce:
            raise self.__fail(ProtocolViolationError('The own public nonce was altered.'))
        R = point_sum(nonces[pk] for pk in self.__combined.pubkeys)
        if is_infinity(R):
            raise self.__fail(InvalidPointError('The combined nonce is the point at infinity.'))
        self.__nonces = nonces
        self.__fin_nonce = R
        return R

    def compute_challenge(self):
        """e = H(R, X, m), identical for all participants."""

        self.__require(Stage.NONCE_COLLECTION)
        if self.__fin_nonce is None:
            raise self.__fail(ProtocolViolationError('The public nonces of all signers need to be known.'))
        self.__challenge = challenge(self.__fin_nonce, self.__combined.get_pubkey(), self.__msg)
        self.__set_stage(Stage.CHALLENGE)
        return self.__challenge

    def partial_sign(self):
        """Compute s_i = r_i + k_i * a_i * e. The secret nonce is wiped afterwards."""

        self.__require(Stage.CHALLENGE)
        if self.__secnonce is None:
            raise self.__fail(ProtocolViolationError('The secret nonce was already used.'))
        k = scalar_mul(self.__keypair.seckey, self.__coefficient)
        s = scalar_add(self.__secnonce, scalar_mul(k, self.__challenge))
        self.__secnonce = None
        self.__set_stage(Stage.PARTIAL_SIGN)
        return PartialSigMessage(self.__own_pk, s)

    def partial_sig_verify(self, message, index=None):
        """Check s_i*G == R_i + e*a_i*X_i for one received partial signature."""

        self.__require(Stage.PARTIAL_SIGN)
        try:
            pk = bytes_from_point(lift_point(message.pubkey, index))
        except MalformedInputError as e:
            raise self.__fail(e)
        if pk not in self.__nonces:
            raise self.__fail(ProtocolViolationError('The partial signature belongs to an unknown signer.', index))
        s = message.s
        if not isinstance(s, int) or is_scalar_overflow(s):
            return False
        e = scalar_mul(self.__challenge, self.__combined.coefficient(pk))
        X_i = point_from_bytes(pk)
        return point_mul(curve.G, s) == point_add(self.__nonces[pk], point_mul(X_i, e))

    def partial_sig_combine(self, messages):
        """
        Compute the sum of all partial signatures.

        s = s[0] + s[1] + ... + s[n], returned together with R as the final signature.
        """

        self.__require(Stage.PARTIAL_SIGN)
        self.__set_stage(Stage.COMBINE)
        self.__check_participants(messages, 'partial signature')
        s_sum = 0
        for i, message in enumerate(messages):
            if not isinstance(message.s, int) or is_scalar_overflow(message.s):
                raise self.__fail(ScalarOverflowError('The signature is outside of the group order.', i))
            s_sum = scalar_add(s_sum, message.s)
        self.__set_stage(Stage.DONE)
        return Signature(self.__fin_nonce, s_sum)


def run_session(keypairs, msg, require_commitments=True):
    """
    Run a complete signing session between local signers.

    Every signer owns a mailbox. Each round broadcasts one message per signer and
    no signer proceeds before its mailbox holds a message from every participant.
    A signer that produces None for a round did not publish; the session is abandoned.
    Returns the combined public key and the aggregate signature.
    """

    combined = CombinedPubkey([kp.pubkey for kp in keypairs])
    sessions = [MuSigSession(kp, combined, msg, require_commitments) for kp in keypairs]
    mailboxes = [queue.Queue() for _ in sessions]

    def collect(i, what):
        messages = []
        for _ in range(len(sessions)):
            try:
                messages.append(mailboxes[i].get_nowait())
            except queue.Empty:
                raise ProtocolViolationError('Not every participant published a {}.'.format(what))
        return messages

    def run_round(what, produce, consume):
        try:
            for i, session in enumerate(sessions):
                message = produce(i, session)
                if message is None:
                    continue
                for mailbox in mailboxes:
                    mailbox.put(message)
            return [consume(session, collect(i, what)) for i, session in enumerate(sessions)]
        except (MalformedInputError, ProtocolViolationError, EntropyError) as e:
            for session in sessions:
                session.abort(str(e))
            raise

    def verify_and_combine(session, messages):
        for i, message in enumerate(messages):
            if not session.partial_sig_verify(message, i):
                pk = bytes_from_point(lift_point(message.pubkey))
                raise ProtocolViolationError('Invalid partial signature.', combined.pubkeys.index(pk))
        return session.partial_sig_combine(messages)

    try:
        nonces = [session.create_nonce() for session in sessions]
    except EntropyError as e:
        for session in sessions:
            session.abort(str(e))
        raise
    if require_commitments:
        # commitments go out before any nonce is revealed
        run_round('nonce commitment',
                  lambda i, session: session.get_nonce_commitment(),
                  lambda session, messages: session.set_nonce_commitments(messages))
    run_round('nonce',
              lambda i, session: nonces[i],
              lambda session, messages: (session.set_nonces(messages), session.compute_challenge()))
    sigs = run_round('partial signature', lambda i, session: session.partial_sign(), verify_and_combine)
    if any(sig != sigs[0] for sig in sigs):
        raise ProtocolViolationError('The signers combined different signatures.')
    logger.debug('session with %d signers finished', len(sessions))
    return combined, sigs[0]
