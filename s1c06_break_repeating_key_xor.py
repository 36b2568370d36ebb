#!/usr/bin/env python3
import base64
import sys

from xor_util import break_repeating_key_xor, estimate_repeating_xor_key_size, repeating_key_xor

"""
Break repeating-key XOR

There's a file here. It's been base64'd after being encrypted with repeating-key XOR.

Decrypt it.

Here's how:

    Let KEYSIZE be the guessed length of the key; try values from 2 to (say) 40.
    For each KEYSIZE, take the first KEYSIZE worth of bytes, and the second KEYSIZE worth of bytes, and find the
    edit distance between them. Normalize this result by dividing by KEYSIZE.
    The KEYSIZE with the smallest normalized edit distance is probably the key. Or take 4 KEYSIZE blocks instead
    of 2 and average the distances.
    Now transpose the blocks: make a block that is the first byte of every block, and a block that is the second
    byte of every block, and so on.
    Solve each block as if it was single-character XOR. You already have code to do this.
"""


def main():
    path = sys.argv[1] if len(sys.argv) > 1 else "data/s1c06.txt"
    with open(path, "r") as f:
        ciphertext = base64.b64decode(f.read().encode())

    keysize = estimate_repeating_xor_key_size(ciphertext, 2, 40)
    print(f"Keysize: {keysize}")

    key = break_repeating_key_xor(ciphertext, key_length=keysize)
    print(f"Key: {key!r}")
    print(repeating_key_xor(ciphertext, key).decode(errors="replace"))


if __name__ == "__main__":
    main()
