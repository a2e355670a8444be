"""
Storax — Basic Usage Example

Encrypts a couple of files under an identity secret, watches them move
through verification, reads them back, and shows that a different
identity cannot open them.
"""

import logging
import sys
import time
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from storax import (
    AuthenticationError,
    RemoteConfig,
    StoraxClient,
    StoraxConfig,
    VerificationPolicy,
)


def main():
    logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s")

    identity = "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU"

    print("=" * 50)
    print("  Storax — Encrypted Content-Addressed Storage")
    print("=" * 50)

    config = StoraxConfig(
        cache_dir=Path("./example-cache"),
        state_dir=Path("./example-state"),
        remote=RemoteConfig(),                      # local-only; gateways still tried on miss
        policy=VerificationPolicy(tick_interval=0.5, pending_delay=1.0, verify_delay=2.0),
    )

    files = {
        "journal.txt": b"Had a breakthrough idea today.\nBuilt the prototype. It works.\n",
        "settings.json": b'{"theme": "dark", "lang": "en"}',
    }

    with StoraxClient(identity, config=config) as client:
        stored = []
        for name, data in files.items():
            obj = client.store_file(data, name)
            stored.append(obj)
            print(f"\n  {name}")
            print(f"    address:   {obj.content_address}")
            print(f"    size:      {obj.original_size} → {obj.encrypted_size} bytes")
            print(f"    status:    {obj.status.value}")

        print("\n  Waiting for verification...")
        time.sleep(config.policy.verified_after + config.policy.tick_interval * 2)

        for obj in stored:
            status = client.status(obj.id)
            print(f"    {obj.display_name}: {status['status']} "
                  f"(available from {status['availability']['source']})")

        print("\n  Reading back:")
        for obj in stored:
            plaintext = client.retrieve(obj.content_address)
            ok = plaintext == files[obj.display_name]
            print(f"    {obj.display_name}: {'PASS' if ok else 'FAIL'}")

        print("\n  Trying a different identity:")
        try:
            client.manager.download("someone-else", stored[0])
            print("    FAIL (decrypted with the wrong identity)")
        except AuthenticationError:
            print("    Rejected: ciphertext does not authenticate")

        print(f"\n  Summary: {client.manager.summary()}")


if __name__ == "__main__":
    main()
