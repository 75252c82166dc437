"""
Exceptions raised by the Merkle commitment builders.
"""


class MerkleTreeError(Exception):
    """Base class for errors raised while building or querying a tree."""


class ElementNotFoundError(MerkleTreeError, KeyError):
    """The requested element is not part of the tree's element set."""

    def __str__(self):
        return Exception.__str__(self)


class MalformedProofError(MerkleTreeError, ValueError):
    """A proof or prefix word is not a 32-byte digest."""


class InvalidPaymentError(MerkleTreeError, ValueError):
    """A payment entry has an invalid payee address or amount."""
