#!/usr/bin/env python3
import sys

from xor_util import break_single_xor_cipher, decrypt_single_xor, detect_single_xor_ciphertext

"""
Detect single-character XOR

One of the 60-character strings in this file has been encrypted by single-character XOR.

Find it.

(Your code from #3 should help.)
"""


def main():
    path = sys.argv[1] if len(sys.argv) > 1 else "data/s1c04.txt"
    with open(path, "r") as f:
        ciphertexts = [bytes.fromhex(line.strip()) for line in f if line.strip()]

    needle = detect_single_xor_ciphertext(ciphertexts)
    print(f"Lowest entropy ciphertext: {needle.hex()}")
    print(f"Decrypts to: {decrypt_single_xor(needle)!r}")

    results = break_single_xor_cipher(ciphertexts)
    n = 10
    print(f"Top {n} results by englishness")
    for result in results[:n]:
        print(result)


if __name__ == "__main__":
    main()
