from dataclasses import dataclass
from collections.abc import Mapping

from eth_abi.packed import encode_packed
from web3 import Web3

from commitment_config import LeafEncoding, PAYMENT_LEAF_TYPES
from tree_exceptions import InvalidPaymentError

UINT256_MAX = 2**256 - 1


def normalize_payee(payee) -> str:
    """Return the EIP-55 checksum form of a payee address."""
    if isinstance(payee, bytes) and len(payee) == 20:
        return Web3.to_checksum_address(payee)
    if not isinstance(payee, str) or not Web3.is_address(payee):
        raise InvalidPaymentError(f"Invalid payee address: {payee!r}")
    return Web3.to_checksum_address(payee)


def _check_amount(amount):
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidPaymentError(f"Payment amount must be an integer, got {amount!r}")
    if amount < 0 or amount > UINT256_MAX:
        raise InvalidPaymentError(f"Payment amount {amount} does not fit in uint256")
    return amount


@dataclass(frozen=True)
class Payment:
    """A payee and the cumulative amount of tokens owed to it across all payment cycles."""
    payee: str
    amount: int

    def __post_init__(self):
        object.__setattr__(self, "payee", normalize_payee(self.payee))
        _check_amount(self.amount)


def _entry_fields(entry):
    if isinstance(entry, Payment):
        return entry.payee, entry.amount
    if isinstance(entry, Mapping):
        return entry.get("payee"), entry.get("amount")
    if isinstance(entry, (tuple, list)) and len(entry) == 2:
        return entry[0], entry[1]
    return None, None


def reduce_payments(payment_list):
    """
    Collapse a raw payment list into one Payment per payee.

    Entries with no payee or a zero/missing amount are skipped. Amounts of
    repeated payees are summed; payees keep the order they were first seen in.
    """
    totals = {}
    for entry in payment_list:
        payee, amount = _entry_fields(entry)
        if not payee or not amount:
            continue
        payee = normalize_payee(payee)
        totals[payee] = totals.get(payee, 0) + _check_amount(amount)
    return [Payment(payee, amount) for payee, amount in totals.items()]


def encode_payment_node(payment: Payment, leaf_encoding: LeafEncoding = LeafEncoding.PACKED):
    """Leaf record for a reduced payment. The tree hashes this record to get the leaf."""
    if leaf_encoding is LeafEncoding.TEXT:
        return f"{payment.payee},{payment.amount}"
    return encode_packed(list(PAYMENT_LEAF_TYPES), [payment.payee, payment.amount])
