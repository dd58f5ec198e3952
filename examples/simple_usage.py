#!/usr/bin/env python3
"""
Simple example of using the sol.lens SDK.
"""
import logging
import os

from sollens import ClientConfig, KeypairSigner, LensClient


def print_view(view):
    if view.error:
        print(f"Error: {view.error}")
    if view.snapshot is not None:
        snapshot = view.snapshot
        print(f"{snapshot.address}: {snapshot.display_balance} SOL")
        for signature in snapshot.recent_transaction_ids:
            print(f"  {signature}")
    if view.submission is not None:
        print(f"Transfer {view.submission.signature}: {view.submission.status.value}")


def main():
    """
    Demonstrate basic usage of the LensClient.

    This example shows how to:
    1. Look up any account by its public key
    2. Attach a local keypair as the signer
    3. Send a transfer and wait for it to confirm
    """
    logging.basicConfig(level=logging.INFO)

    network = os.environ.get("SOLLENS_NETWORK", "devnet")
    keypair_path = os.environ.get("KEYPAIR_PATH")
    recipient = os.environ.get("RECIPIENT")
    amount = os.environ.get("AMOUNT", "0.001")

    config = ClientConfig.for_network(network)

    with LensClient(config=config) as client:
        client.subscribe(print_view)

        lookup = os.environ.get("LOOKUP_ADDRESS")
        if lookup:
            client.request_snapshot(lookup)

        if not keypair_path:
            print("Set KEYPAIR_PATH to send a transfer")
            return

        client.set_signer(KeypairSigner.from_keypair_file(keypair_path))

        if not recipient:
            print("Set RECIPIENT to send a transfer")
            return

        result = client.request_transfer(amount, recipient)
        if result is not None:
            print(f"Final status: {result.status.value}")


if __name__ == "__main__":
    main()
