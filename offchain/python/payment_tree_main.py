#!/usr/bin/env python3
"""
Payment Tree Builder - Command Line

Builds the cumulative payment tree for one payment cycle from a JSON payment list,
prints the root to publish on-chain and writes every payee's proof to a JSON file.
Each proof is checked locally before it is written.
"""

import argparse
import json
import logging
import os
import sys

from commitment_config import (
    LEAF_ENCODING_VERSION,
    CommitmentConfig,
    HashAlgorithm,
    LeafEncoding,
    get_commitment_config,
)
from cumulative_payment_tree import CumulativePaymentTree
from proof_verifier import verify_payment_proof
from tree_exceptions import MerkleTreeError

# --- CONFIGURATION ---
PAYMENTS_FILE = 'payments.json'
PROOFS_FILE = 'proofs.json'


# --- DATA MANAGEMENT ---
def load_payments(path):
    if not os.path.exists(path):
        raise FileNotFoundError(f"Payment file not found at '{path}'.")
    with open(path, 'r') as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError("Payment file must contain a JSON list of {payee, amount} objects.")
    # Amounts over 2**53 are stored as strings to survive JavaScript tooling
    payments = []
    for entry in data:
        if not isinstance(entry, dict):
            raise ValueError(f"Payment entry is not an object: {entry!r}")
        amount = entry.get('amount')
        if isinstance(amount, str):
            amount = int(amount, 0)
        payments.append({'payee': entry.get('payee'), 'amount': amount})
    return payments


def save_proofs(path, output):
    with open(path, 'w') as f:
        json.dump(output, f, indent=4)


# --- MAIN WORKFLOWS ---
def build_payment_tree(payments, config):
    print("--- [SYSTEM] Building cumulative payment tree... ---")
    tree = CumulativePaymentTree(payments, config=config)
    print(f"Loaded {len(payments)} payment entries, reduced to {len(tree.payment_list)} payees.")
    print(f"-> New Merkle Root calculated: {tree.get_hex_root()}")
    return tree


def generate_proofs(tree, payment_cycle, config):
    print(f"\n--- [PROOFS] Generating proofs for payment cycle {payment_cycle} ---")
    proofs = {}
    failed = []
    root = tree.get_root()

    for payment in tree.payment_list:
        hex_proof = tree.hex_proof_for_payee(payment.payee, payment_cycle)

        # --- LOCAL VERIFICATION STEP ---
        if not verify_payment_proof(payment.payee, payment.amount, hex_proof, root,
                                    payment_cycle=payment_cycle, config=config):
            failed.append(payment.payee)
            continue

        proofs[payment.payee] = {'amount': str(payment.amount), 'proof': hex_proof}

    if failed:
        print(f"-> 🔴 Local check failed for {len(failed)} payees: {', '.join(failed)}")
    else:
        print(f"-> ✅ Local check passed for all {len(proofs)} proofs.")
    return proofs, failed


def parse_args(argv=None):
    defaults = get_commitment_config()
    parser = argparse.ArgumentParser(description='Build the cumulative payment Merkle tree and payee proofs')
    parser.add_argument('--payments', type=str, default=PAYMENTS_FILE, help='JSON list of {payee, amount} entries')
    parser.add_argument('--payment-cycle', type=int, required=True, help='Payment cycle number placed in every proof')
    parser.add_argument('--output', type=str, default=PROOFS_FILE, help='Where to write the root and proofs')
    parser.add_argument('--hash-algorithm', choices=[a.value for a in HashAlgorithm],
                        default=defaults.hash_algorithm.value,
                        help='Digest used for leaves and pairs (must match the verifying contract)')
    parser.add_argument('--leaf-encoding', choices=[e.value for e in LeafEncoding],
                        default=defaults.leaf_encoding.value,
                        help='Leaf record encoding (packed = abi.encodePacked(address, uint256))')
    parser.add_argument('--verbose', action='store_true', help='Enable verbose output')
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    config = CommitmentConfig(
        hash_algorithm=HashAlgorithm(args.hash_algorithm),
        leaf_encoding=LeafEncoding(args.leaf_encoding),
        verbose_logging=args.verbose or get_commitment_config().verbose_logging,
    )
    logging.basicConfig(
        level=logging.DEBUG if config.verbose_logging else logging.WARNING,
        format='%(asctime)s %(name)s %(levelname)s %(message)s',
    )

    try:
        payments = load_payments(args.payments)
    except (OSError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    try:
        tree = build_payment_tree(payments, config)
    except MerkleTreeError as e:
        print(f"Error: {e}")
        return 1

    try:
        proofs, failed = generate_proofs(tree, args.payment_cycle, config)
    except MerkleTreeError as e:
        print(f"Error: {e}")
        return 1
    if failed:
        return 1

    output = {
        'root': tree.get_hex_root(),
        'paymentCycle': args.payment_cycle,
        'hashAlgorithm': config.hash_algorithm.value,
        'leafEncoding': config.leaf_encoding.value,
        'leafEncodingVersion': LEAF_ENCODING_VERSION,
        'payments': proofs,
    }
    save_proofs(args.output, output)
    print(f"\n-> Wrote {len(proofs)} proofs to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
