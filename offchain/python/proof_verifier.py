#!/usr/bin/env python3
"""
Payment Proof Verifier

Reference implementation of the checks the PaymentPool contract runs on a withdrawal:
the leading words of the proof carry the payment cycle and the claimed amount, the
rest is the sibling path. The leaf is rebuilt from (payee, amount) and replayed up to
the root with the same sorted pair hash used to build the tree.

Used to check proofs locally before handing them to payees.
"""

import logging

from eth_utils import decode_hex, to_int

from basic_data_structure import Payment, encode_payment_node
from commitment_config import resolve_config
from merkle_tree import WORD_SIZE, combined_hash, default_leaf_hash
from tree_exceptions import InvalidPaymentError, MalformedProofError

logger = logging.getLogger(__name__)

# [payment_cycle, amount]
PAYMENT_PREFIX_WORDS = 2


def split_hex_proof(hex_proof: str) -> list:
    """Split a 0x-prefixed hex proof into 32-byte words."""
    try:
        raw = decode_hex(hex_proof)
    except (ValueError, TypeError) as e:
        raise MalformedProofError(f"Proof is not valid hex: {hex_proof!r}") from e

    if len(raw) % WORD_SIZE != 0:
        raise MalformedProofError(f"Proof length {len(raw)} is not a multiple of {WORD_SIZE}")
    return [raw[i:i + WORD_SIZE] for i in range(0, len(raw), WORD_SIZE)]


def process_proof(leaf: bytes, proof, config=None) -> bytes:
    """Rebuild the root from a leaf and its sibling path."""
    algorithm = resolve_config(config).hash_algorithm
    computed = leaf
    for sibling in proof:
        if not isinstance(sibling, bytes) or len(sibling) != WORD_SIZE:
            raise MalformedProofError("Proof element is not a 32-byte digest")
        computed = combined_hash(computed, sibling, algorithm)
    return computed


def verify_proof(leaf: bytes, proof, root: bytes, config=None) -> bool:
    return process_proof(leaf, proof, config) == root


def payment_leaf(payee, amount, config=None) -> bytes:
    """The leaf the contract recomputes from the caller's address and claimed amount."""
    config = resolve_config(config)
    node = encode_payment_node(Payment(payee, amount), config.leaf_encoding)
    return default_leaf_hash(node, config.hash_algorithm)


def verify_payment_proof(payee, amount, hex_proof, root, payment_cycle=None, config=None) -> bool:
    """
    Check a proof produced by CumulativePaymentTree.hex_proof_for_payee.

    Returns False (never raises) for a proof that does not match; raises
    MalformedProofError only when the proof is not well-formed hex words.
    """
    words = split_hex_proof(hex_proof)
    if len(words) < PAYMENT_PREFIX_WORDS:
        logger.debug("Proof for %s has no payment prefix", payee)
        return False

    cycle_word, amount_word = words[:PAYMENT_PREFIX_WORDS]
    if to_int(amount_word) != amount:
        logger.debug("Proof amount %d does not match claimed %d", to_int(amount_word), amount)
        return False
    if payment_cycle is not None and to_int(cycle_word) != payment_cycle:
        logger.debug("Proof cycle %d does not match expected %d", to_int(cycle_word), payment_cycle)
        return False

    if isinstance(root, str):
        root = decode_hex(root)

    try:
        leaf = payment_leaf(payee, amount, config)
    except InvalidPaymentError:
        return False
    return verify_proof(leaf, words[PAYMENT_PREFIX_WORDS:], root, config)
