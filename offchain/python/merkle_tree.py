"""
Sorted-Pair Merkle Tree

This module provides a flat, immutable Merkle tree whose root depends only on the
set of leaves. Leaves are deduplicated and sorted, and sibling pairs are sorted
before hashing, so verifiers only need the sibling values along a path and never
their left/right position (OpenZeppelin MerkleProof compatible).
"""

import logging
from typing import Callable, Optional

from eth_utils import encode_hex, to_bytes

from commitment_config import HashAlgorithm, resolve_config
from tree_exceptions import ElementNotFoundError, MalformedProofError

logger = logging.getLogger(__name__)

WORD_SIZE = 32
EMPTY_ROOT = b"\x00" * WORD_SIZE


# --- PURE HASHING / LAYER HELPERS ---

def combined_hash(first: Optional[bytes], second: Optional[bytes],
                  algorithm: HashAlgorithm = HashAlgorithm.KECCAK256) -> Optional[bytes]:
    """Hash two nodes in ascending byte order. A missing side returns the other side."""
    if not first:
        return second
    if not second:
        return first
    combined = first + second if first < second else second + first
    return algorithm.digest(combined)


def next_layer(layer, algorithm: HashAlgorithm = HashAlgorithm.KECCAK256) -> tuple:
    """Hash the layer two nodes at a time. An odd last node is carried up unchanged."""
    return tuple(
        combined_hash(layer[i], layer[i + 1] if i + 1 < len(layer) else None, algorithm)
        for i in range(0, len(layer), 2)
    )


def build_layers(elements, algorithm: HashAlgorithm = HashAlgorithm.KECCAK256) -> tuple:
    """Build all layers from the sorted element set up to the single root."""
    if not elements:
        return ((EMPTY_ROOT,),)

    layers = [tuple(elements)]
    while len(layers[-1]) > 1:
        layers.append(next_layer(layers[-1], algorithm))
    return tuple(layers)


def default_leaf_hash(element, algorithm: HashAlgorithm = HashAlgorithm.KECCAK256) -> bytes:
    """Digest of a record's bytes: str as UTF-8, int as big-endian, bytes as-is."""
    if isinstance(element, str):
        data = element.encode("utf-8")
    elif isinstance(element, (bytes, bytearray)):
        data = bytes(element)
    elif isinstance(element, int) and not isinstance(element, bool):
        data = to_bytes(primitive=element)
    else:
        raise TypeError(f"Cannot hash tree element of type {type(element).__name__}")
    return algorithm.digest(data)


def encode_prefix_word(value) -> bytes:
    """Left-pad a prefix value (int, bytes or 0x-hex string) to a 32-byte big-endian word."""
    if isinstance(value, bool):
        raise MalformedProofError(f"Prefix value must not be a bool: {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise MalformedProofError(f"Prefix value must be unsigned: {value}")
        raw = to_bytes(primitive=value)
    elif isinstance(value, (bytes, bytearray)):
        raw = bytes(value)
    elif isinstance(value, str):
        try:
            raw = to_bytes(hexstr=value)
        except ValueError as e:
            raise MalformedProofError(f"Prefix value is not hex: {value!r}") from e
    else:
        raise MalformedProofError(f"Unsupported prefix value type: {type(value).__name__}")

    if len(raw) > WORD_SIZE:
        raise MalformedProofError(f"Prefix value is wider than {WORD_SIZE} bytes")
    return raw.rjust(WORD_SIZE, b"\x00")


def proof_to_hex(proof) -> str:
    """Render a list of 32-byte words as one 0x-prefixed hex string."""
    if any(not isinstance(word, bytes) or len(word) != WORD_SIZE for word in proof):
        raise MalformedProofError("Proof is not a list of 32-byte digests")
    return encode_hex(b"".join(proof))


class MerkleTree:
    """Immutable Merkle tree over arbitrary records with sorted pair hashing."""

    def __init__(self, elements, leaf_hash: Optional[Callable] = None, config=None):
        self.config = resolve_config(config)
        self.hash_algorithm = self.config.hash_algorithm
        self._leaf_hash = leaf_hash

        # Filter empty records and hash the rest
        hashes = [self.leaf_hash(el) for el in elements if el]

        # Deduplicate (first occurrence wins), then sort
        self.elements = tuple(sorted(dict.fromkeys(hashes)))
        self._positions = {el: idx for idx, el in enumerate(self.elements)}

        self.layers = build_layers(self.elements, self.hash_algorithm)

        logger.debug("Built Merkle tree: %d leaves, %d layers, root %s",
                     len(self.elements), len(self.layers), self.get_hex_root())

    def leaf_hash(self, element) -> bytes:
        """Hash a record into a 32-byte leaf using the tree's leaf hash function."""
        if self._leaf_hash is not None:
            leaf = self._leaf_hash(element)
        else:
            leaf = default_leaf_hash(element, self.hash_algorithm)
        if not isinstance(leaf, bytes) or len(leaf) != WORD_SIZE:
            raise MalformedProofError("Leaf hash function must return 32 bytes")
        return leaf

    def combined_hash(self, first, second):
        return combined_hash(first, second, self.hash_algorithm)

    def get_root(self) -> bytes:
        return self.layers[-1][0]

    def get_hex_root(self) -> str:
        return encode_hex(self.get_root())

    def index_of(self, element) -> int:
        """Position of the element in the sorted element set, or -1."""
        # Convert element to 32 byte hash if it is not one already
        if isinstance(element, (bytes, bytearray)) and len(element) == WORD_SIZE:
            leaf = bytes(element)
        else:
            leaf = self.leaf_hash(element)
        return self._positions.get(leaf, -1)

    def __contains__(self, element):
        return self.index_of(element) != -1

    def __len__(self):
        return len(self.elements)

    def get_proof(self, element, prefix=None) -> list:
        """
        Sibling path from the element's leaf up to the root.

        If prefix is given (one value or a sequence), each value is encoded as a
        32-byte word and placed before the siblings, in order.
        """
        idx = self.index_of(element)
        if idx == -1:
            raise ElementNotFoundError("Element does not exist in Merkle tree")

        proof = []
        for layer in self.layers:
            pair_idx = idx ^ 1
            if pair_idx < len(layer):
                proof.append(layer[pair_idx])
            idx //= 2

        if prefix is not None:
            if not isinstance(prefix, (list, tuple)):
                prefix = [prefix]
            proof = [encode_prefix_word(item) for item in prefix] + proof

        return proof

    def get_hex_proof(self, element, prefix=None) -> str:
        return proof_to_hex(self.get_proof(element, prefix))

    def __repr__(self):
        return f"MerkleTree({len(self.elements)} leaves, root={self.get_hex_root()})"
