#!/usr/bin/env python3
"""
Commitment Configuration

This module pins the two choices that must match the on-chain verifier bit for bit:
1. The digest algorithm used for leaves and for combining sibling pairs
2. The encoding of a (payee, amount) pair into a leaf record

Changing either one produces roots the deployed contract will not accept, so the
leaf encoding carries an explicit version number.
"""

import hashlib
import logging
from dataclasses import dataclass, replace
from enum import Enum

from eth_utils import keccak

logger = logging.getLogger(__name__)

# Bump whenever LeafEncoding.PACKED changes shape.
LEAF_ENCODING_VERSION = 1

# abi.encodePacked(address payee, uint256 amount)
PAYMENT_LEAF_TYPES = ("address", "uint256")


class HashAlgorithm(Enum):
    """Digest used for leaf hashes and combined sibling hashes."""
    KECCAK256 = "keccak256"   # Solidity keccak256, what the PaymentPool contract uses
    SHA256 = "sha256"         # For verifiers built on the sha256 precompile

    def digest(self, data: bytes) -> bytes:
        if self is HashAlgorithm.SHA256:
            return hashlib.sha256(data).digest()
        return keccak(data)


class LeafEncoding(Enum):
    """How a reduced payment is turned into a leaf record."""
    PACKED = "packed"   # abi.encodePacked(address, uint256)
    TEXT = "text"       # "<payee>,<amount>" as UTF-8


@dataclass(frozen=True)
class CommitmentConfig:
    """Configuration captured by every tree at construction time."""
    hash_algorithm: HashAlgorithm = HashAlgorithm.KECCAK256
    leaf_encoding: LeafEncoding = LeafEncoding.PACKED

    # Debugging
    verbose_logging: bool = False


# Global configuration - used when a tree is built without an explicit config
COMMITMENT_CONFIG = CommitmentConfig()


def set_commitment_config(**kwargs) -> CommitmentConfig:
    """Replace fields of the global configuration. Unknown keys raise TypeError."""
    global COMMITMENT_CONFIG
    COMMITMENT_CONFIG = replace(COMMITMENT_CONFIG, **kwargs)
    logger.info("Commitment config switched to: %s", COMMITMENT_CONFIG)
    return COMMITMENT_CONFIG


def get_commitment_config() -> CommitmentConfig:
    """Get current commitment configuration."""
    return COMMITMENT_CONFIG


def reset_to_default_config():
    """Reset configuration to default values."""
    global COMMITMENT_CONFIG
    COMMITMENT_CONFIG = CommitmentConfig()


def resolve_config(config=None) -> CommitmentConfig:
    return config if config is not None else get_commitment_config()
