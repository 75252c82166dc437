import pytest
from eth_utils import keccak
from web3 import Web3

from basic_data_structure import Payment, reduce_payments
from commitment_config import CommitmentConfig, HashAlgorithm, LeafEncoding
from cumulative_payment_tree import EMPTY_PROOF_HEX, CumulativePaymentTree
from merkle_tree import combined_hash
from proof_verifier import split_hex_proof
from tree_exceptions import InvalidPaymentError


def solidity_leaf(payee, amount):
    return bytes(Web3.solidity_keccak(["address", "uint256"], [payee, amount]))


def test_duplicate_payees_are_summed(payees):
    p1, p2 = payees[1], payees[2]
    tree = CumulativePaymentTree([
        {"payee": p1, "amount": 10},
        {"payee": p2, "amount": 12},
        {"payee": p1, "amount": 8},
    ])
    assert tree.payment_list == (Payment(p1, 18), Payment(p2, 12))
    assert tree.amount_for_payee(p1) == 18
    assert tree.amount_for_payee(p2) == 12
    assert tree.total_amount == 30
    assert tree.payees == (p1, p2)


def test_payee_case_is_normalised(payees):
    lower = payees[1].lower()
    tree = CumulativePaymentTree([
        {"payee": lower, "amount": 3},
        {"payee": payees[1], "amount": 4},
    ])
    assert tree.payment_list == (Payment(payees[1], 7),)
    assert tree.amount_for_payee(lower) == 7
    assert tree.amount_for_payee(lower.upper().replace("0X", "0x")) == 7


def test_entries_without_payee_or_amount_are_dropped(payees):
    tree = CumulativePaymentTree([
        {"payee": None, "amount": 5},
        {"payee": payees[1]},
        {"payee": payees[2], "amount": 0},
        {"payee": payees[3], "amount": 4},
        {},
    ])
    assert tree.payment_list == (Payment(payees[3], 4),)


def test_accepts_payment_records_and_pairs(payees):
    from_dicts = CumulativePaymentTree([{"payee": payees[1], "amount": 5}, {"payee": payees[2], "amount": 6}])
    from_records = CumulativePaymentTree([Payment(payees[1], 5), (payees[2], 6)])
    assert from_dicts.get_root() == from_records.get_root()


def test_unknown_payee(payments, payees):
    tree = CumulativePaymentTree(payments)
    assert tree.amount_for_payee(payees[5]) == 0
    assert tree.amount_for_payee("not-an-address") == 0
    assert tree.hex_proof_for_payee(payees[5], 1) == "0x" + "00" * 32
    assert tree.hex_proof_for_payee(payees[5], 1) == EMPTY_PROOF_HEX
    assert tree.proof_for_payee(payees[5], 1) == []
    assert tree.leaf_for_payee(payees[5]) is None


def test_leaves_match_solidity_keccak(payments, payees):
    tree = CumulativePaymentTree(payments)
    expected = sorted(solidity_leaf(p["payee"], p["amount"]) for p in payments)
    assert list(tree.elements) == expected
    assert tree.leaf_for_payee(payees[1]) == solidity_leaf(payees[1], 10)


def test_root_is_independent_of_payment_order(payments):
    forward = CumulativePaymentTree(payments)
    backward = CumulativePaymentTree(list(reversed(payments)))
    assert forward.get_hex_root() == backward.get_hex_root()


def test_proof_for_payee_replays_to_published_root(payments, payees):
    tree = CumulativePaymentTree(payments)
    root = tree.get_root()
    payment_cycle = 1

    words = split_hex_proof(tree.hex_proof_for_payee(payees[1], payment_cycle))
    assert int.from_bytes(words[0], "big") == payment_cycle
    assert int.from_bytes(words[1], "big") == 10

    computed = solidity_leaf(payees[1], 10)
    for sibling in words[2:]:
        computed = combined_hash(computed, sibling)
    assert computed == root

    # The contract recomputes the leaf from the claimed amount
    forged = solidity_leaf(payees[1], 11)
    for sibling in words[2:]:
        forged = combined_hash(forged, sibling)
    assert forged != root


def test_hex_proof_matches_word_proof(payments, payees):
    tree = CumulativePaymentTree(payments)
    for payee in payees[1:5]:
        words = tree.proof_for_payee(payee, 3)
        assert tree.hex_proof_for_payee(payee, 3) == "0x" + "".join(w.hex() for w in words)


def test_new_cycle_changes_root(payments, payees):
    first = CumulativePaymentTree(payments)
    second = CumulativePaymentTree(payments + [{"payee": payees[1], "amount": 5}])
    assert first.get_root() != second.get_root()
    assert first.amount_for_payee(payees[1]) == 10
    assert second.amount_for_payee(payees[1]) == 15


def test_empty_payment_list():
    tree = CumulativePaymentTree([])
    assert tree.payment_list == ()
    assert tree.get_hex_root() == "0x" + "00" * 32
    assert tree.total_amount == 0


def test_text_leaf_encoding(payments, payees):
    config = CommitmentConfig(leaf_encoding=LeafEncoding.TEXT)
    tree = CumulativePaymentTree(payments, config=config)
    assert tree.payment_nodes[0] == f"{payees[1]},10"
    assert tree.leaf_for_payee(payees[1]) == keccak(text=f"{payees[1]},10")
    assert tree.get_root() != CumulativePaymentTree(payments).get_root()


def test_sha256_hash_algorithm(payments):
    config = CommitmentConfig(hash_algorithm=HashAlgorithm.SHA256)
    tree = CumulativePaymentTree(payments, config=config)
    assert tree.hash_algorithm is HashAlgorithm.SHA256
    assert tree.get_root() != CumulativePaymentTree(payments).get_root()


def test_invalid_payee_raises():
    with pytest.raises(InvalidPaymentError):
        CumulativePaymentTree([{"payee": "0x1234", "amount": 1}])


def test_invalid_amounts_raise(payees):
    with pytest.raises(InvalidPaymentError):
        Payment(payees[1], -1)
    with pytest.raises(InvalidPaymentError):
        Payment(payees[1], 2**256)
    with pytest.raises(InvalidPaymentError):
        reduce_payments([{"payee": payees[1], "amount": "10"}])
    with pytest.raises(InvalidPaymentError):
        reduce_payments([{"payee": payees[1], "amount": 2**256 - 1}, {"payee": payees[1], "amount": 1}])
