#!/usr/bin/env python3
from enum import Enum
from secrets import choice, randbelow, token_bytes
from typing import Callable, Optional

from block_util import BLOCK_SIZE, aes_cbc_encrypt, aes_ecb_encrypt, is_ecb

"""
An ECB/CBC detection oracle

Write a function to generate a random AES key; that's just 16 random bytes.

Write a function that encrypts data under an unknown key --- that is, a function that generates a random key
and encrypts under it.

Under the hood, have the function append 5-10 bytes (count chosen randomly) before the plaintext and 5-10 bytes
after the plaintext.

Now, have the function choose to encrypt under ECB 1/2 the time, and under CBC the other half (just use random
IVs each time for CBC).

Detect the block cipher mode the function is using each time. You should end up with a piece of code that,
pointed at a block box that might be encrypting ECB or CBC, tells you which one is happening.
"""


class BlockCipherMode(Enum):
    ECB = 0
    CBC = 1


class EcbCbcOracle:
    """
    An oracle that randomly picks ECB or CBC mode (50/50 split) and then encrypts data using AES in that mode
    under a key fixed at construction (and a random IV per encryption in the case of CBC mode), bookending the
    plaintext with 5-10 random bytes
    """
    mode: BlockCipherMode

    def __init__(self, key: Optional[bytes] = None, mode: Optional[BlockCipherMode] = None):
        self._key = key if key is not None else token_bytes(BLOCK_SIZE)
        if mode is not None:
            self.mode = mode
        elif choice((True, False)):
            self.mode = BlockCipherMode.ECB
        else:
            self.mode = BlockCipherMode.CBC

    def encrypt(self, plaintext: bytes) -> bytes:
        """
        >>> oracle = EcbCbcOracle(mode=BlockCipherMode.CBC)
        >>> len(oracle.encrypt(b"")) in (16, 32)
        True
        """
        # Bookend plaintext with 5-10 random bytes
        plaintext = token_bytes(randbelow(6) + 5) + plaintext + token_bytes(randbelow(6) + 5)

        if self.mode is BlockCipherMode.ECB:
            return aes_ecb_encrypt(plaintext, key=self._key)
        return aes_cbc_encrypt(plaintext, key=self._key, iv=token_bytes(BLOCK_SIZE))


def determine_oracle_ecb_vs_cbc(oracle: Callable[[bytes], bytes],
                                plaintext: bytes = bytes(BLOCK_SIZE * 10)) -> BlockCipherMode:
    """
    Determines if the callable oracle is encrypting using ECB or CBC

    Ten blocks of zeroes leave at least eight whole aligned blocks of zeroes whatever the oracle bookends
    them with. A plaintext without repeating blocks gives ECB nothing to show

    >>> oracle = EcbCbcOracle()
    >>> guessed_mode = determine_oracle_ecb_vs_cbc(oracle.encrypt)
    >>> guessed_mode is oracle.mode
    True

    >>> determine_oracle_ecb_vs_cbc(EcbCbcOracle(mode=BlockCipherMode.ECB).encrypt)
    <BlockCipherMode.ECB: 0>
    >>> determine_oracle_ecb_vs_cbc(EcbCbcOracle(mode=BlockCipherMode.CBC).encrypt)
    <BlockCipherMode.CBC: 1>
    """
    ciphertext = oracle(plaintext)
    if is_ecb(ciphertext, block_size=BLOCK_SIZE):
        return BlockCipherMode.ECB
    return BlockCipherMode.CBC


def ecb_detection_rate(trials: int = 1000, plaintext: bytes = bytes(BLOCK_SIZE * 10)) -> float:
    """
    Return the fraction of freshly constructed oracles that were detected as using ECB when fed plaintext

    >>> 0.4 <= ecb_detection_rate(1000) <= 0.6
    True
    >>> ecb_detection_rate(50, plaintext=bytes(range(BLOCK_SIZE * 2)))
    0.0
    """
    ecb = 0
    for _ in range(trials):
        oracle = EcbCbcOracle()
        if determine_oracle_ecb_vs_cbc(oracle.encrypt, plaintext) is BlockCipherMode.ECB:
            ecb += 1
    return ecb / trials


def main():
    trials = 1000
    correct = 0
    for _ in range(trials):
        oracle = EcbCbcOracle()
        if determine_oracle_ecb_vs_cbc(oracle.encrypt) is oracle.mode:
            correct += 1
    print(f"Detected the mode correctly {correct}/{trials} times")
    print(f"ECB detection rate: {ecb_detection_rate(trials):.3f}")


if __name__ == "__main__":
    main()
