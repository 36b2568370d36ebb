#!/usr/bin/env python3
import sys

from block_util import BLOCK_SIZE, identify_ciphertexts_encrypted_with_ecb

"""
Detect AES in ECB mode

In this file are a bunch of hex-encoded ciphertexts.

One of them has been encrypted with ECB.

Detect it.

Remember that the problem with ECB is that it is stateless and deterministic; the same 16 byte plaintext block will always produce the same 16 byte ciphertext.
"""


def main():
    path = sys.argv[1] if len(sys.argv) > 1 else "data/s1c08.txt"
    with open(path, "r") as f:
        ciphertexts = [bytes.fromhex(line.rstrip()) for line in f if line.strip()]

    suspected_ecb_ciphertexts = identify_ciphertexts_encrypted_with_ecb(ciphertexts, block_size=BLOCK_SIZE)

    print("Suspected ECB ciphertexts:")
    for sus in suspected_ecb_ciphertexts:
        print(sus.hex())


if __name__ == "__main__":
    main()
