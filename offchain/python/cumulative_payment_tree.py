"""
Cumulative Payment Tree

Builds the Merkle commitment published to the PaymentPool contract for one payment
cycle. `payment_list` holds each payee's Ethereum address and the cumulative amount
of tokens paid to the payee across all payment cycles:

    [{"payee": "0x627306090abaB3A6e1400e9345bC60c78a8BEf57", "amount": 20},
     {"payee": "0xf17f52151EbEF6C7334FAD080c5704D77216b732", "amount": 12},
     {"payee": "0x627306090abaB3A6e1400e9345bC60c78a8BEf57", "amount": 5}]

Repeated payees are summed, so the first payee above ends up with 25.
"""

import logging

from eth_utils import encode_hex

from basic_data_structure import encode_payment_node, normalize_payee, reduce_payments
from commitment_config import resolve_config
from merkle_tree import MerkleTree, WORD_SIZE
from tree_exceptions import InvalidPaymentError

logger = logging.getLogger(__name__)

# Returned instead of a proof when a payee has nothing to claim
EMPTY_PROOF_HEX = encode_hex(b"\x00" * WORD_SIZE)


class CumulativePaymentTree(MerkleTree):
    """Merkle tree over reduced (payee, cumulative amount) pairs."""

    def __init__(self, payment_list, config=None):
        config = resolve_config(config)

        self.payment_list = tuple(reduce_payments(payment_list))
        self.payment_nodes = tuple(
            encode_payment_node(payment, config.leaf_encoding) for payment in self.payment_list
        )
        self._by_payee = {
            payment.payee: (payment, node)
            for payment, node in zip(self.payment_list, self.payment_nodes)
        }

        super().__init__(self.payment_nodes, config=config)

        logger.debug("Reduced %d payees, total amount %d", len(self.payment_list), self.total_amount)

    def _lookup(self, payee):
        try:
            return self._by_payee.get(normalize_payee(payee))
        except InvalidPaymentError:
            return None

    @property
    def payees(self):
        return tuple(payment.payee for payment in self.payment_list)

    @property
    def total_amount(self) -> int:
        return sum(payment.amount for payment in self.payment_list)

    def amount_for_payee(self, payee) -> int:
        """Cumulative amount owed to the payee, or 0 when the payee is not in the tree."""
        found = self._lookup(payee)
        if found is None:
            return 0
        return found[0].amount

    def leaf_for_payee(self, payee):
        """The payee's 32-byte leaf, or None."""
        found = self._lookup(payee)
        if found is None:
            return None
        return self.leaf_hash(found[1])

    def proof_for_payee(self, payee, payment_cycle) -> list:
        """Proof words prefixed with [payment_cycle, amount]; empty when the payee is unknown."""
        found = self._lookup(payee)
        if found is None:
            return []
        payment, node = found
        return self.get_proof(node, [payment_cycle, payment.amount])

    def hex_proof_for_payee(self, payee, payment_cycle) -> str:
        """
        Hex proof the payee hands to the contract to withdraw.

        Unknown payees get a zeroed 32-byte word rather than an error, which the
        contract treats as a zero balance.
        """
        found = self._lookup(payee)
        if found is None:
            return EMPTY_PROOF_HEX
        payment, node = found
        return self.get_hex_proof(node, [payment_cycle, payment.amount])

    def __repr__(self):
        return f"CumulativePaymentTree({len(self.payment_list)} payees, root={self.get_hex_root()})"
