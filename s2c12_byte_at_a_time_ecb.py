#!/usr/bin/env python3
import base64
import logging
from secrets import token_bytes
from typing import Callable, Optional

from block_util import BLOCK_SIZE, aes_cbc_encrypt, aes_ecb_encrypt, is_ecb

"""
Byte-at-a-time ECB decryption (Simple)

Copy your oracle function to a new function that encrypts buffers under ECB mode using a consistent but unknown key (for instance, assign a single random key, once, to a global variable).

Now take that same function and have it append to the plaintext, BEFORE ENCRYPTING, the following string:

Um9sbGluJyBpbiBteSA1LjAKV2l0aCBteSByYWctdG9wIGRvd24gc28gbXkg
aGFpciBjYW4gYmxvdwpUaGUgZ2lybGllcyBvbiBzdGFuZGJ5IHdhdmluZyBq
dXN0IHRvIHNheSBoaQpEaWQgeW91IHN0b3A/IE5vLCBJIGp1c3QgZHJvdmUg
YnkK

What you have now is a function that produces:

AES-128-ECB(your-string || unknown-string, random-key)

It turns out: you can decrypt "unknown-string" with repeated calls to the oracle function!
"""

log = logging.getLogger(__name__)

MAX_BLOCK_SIZE = 128

FLAG = "Um9sbGluJyBpbiBteSA1LjAKV2l0aCBteSByYWctdG9wIGRvd24gc28gbXkgaGFpciBjYW4gYmxvdwpUaGUgZ2lybGllcyBvbiBzdGFuZGJ5IHdhdmluZyBqdXN0IHRvIHNheSBoaQpEaWQgeW91IHN0b3A/IE5vLCBJIGp1c3QgZHJvdmUgYnkK"


class OracleAttackError(Exception):
    pass


class BlockSizeNotFoundError(OracleAttackError):
    pass


class SuffixLengthNotFoundError(OracleAttackError):
    pass


class ByteNotFoundError(OracleAttackError):
    recovered: bytes

    def __init__(self, message: str, recovered: bytes):
        super().__init__(message)
        self.recovered = recovered


class EcbAppendingOracle:
    """
    Encrypts attacker-controlled bytes followed by a secret suffix using AES in ECB mode under a key which
    is fixed for the lifetime of the oracle
    """

    def __init__(self, suffix: bytes, key: Optional[bytes] = None):
        self._key = key if key is not None else token_bytes(BLOCK_SIZE)
        self._suffix = suffix

    def encrypt(self, prefix: bytes) -> bytes:
        """
        >>> oracle = EcbAppendingOracle(suffix=b"A" * 8, key=b"YELLOW SUBMARINE")
        >>> len(oracle.encrypt(b""))
        16
        >>> len(oracle.encrypt(b"Z" * 8))
        32
        >>> oracle.encrypt(b"Z") == oracle.encrypt(b"Z")
        True
        """
        return aes_ecb_encrypt(prefix + self._suffix, key=self._key)


def discover_block_size(oracle: Callable[[bytes], bytes], max_block_size: int = MAX_BLOCK_SIZE) -> int:
    """
    Feed two blocks' worth of zeroes for every candidate block size. Only at the true block size do our two
    blocks encrypt to the same ciphertext block, which also proves the oracle is using ECB

    >>> discover_block_size(EcbAppendingOracle(suffix=b"A" * 8).encrypt)
    16

    >>> key = token_bytes(16)
    >>> discover_block_size(lambda pt: aes_cbc_encrypt(pt, key, token_bytes(16)))
    Traceback (most recent call last):
    s2c12_byte_at_a_time_ecb.BlockSizeNotFoundError: No block size up to 128 made the oracle repeat itself
    """
    for block_size in range(2, max_block_size + 1):
        ct = oracle(bytes(block_size * 2))
        # Only the leading blocks are guaranteed to hold our own input
        if is_ecb(ct[:block_size * 2], block_size):
            log.debug("Oracle is ECB with a block size of %d", block_size)
            return block_size
    raise BlockSizeNotFoundError(f"No block size up to {max_block_size} made the oracle repeat itself")


def discover_suffix_length(oracle: Callable[[bytes], bytes], block_size: int) -> int:
    """
    Grow our input a byte at a time until the ciphertext grows by a block. At that point our input and the
    suffix exactly filled the previous blocks and the padding spilled over into a block of its own

    >>> discover_suffix_length(EcbAppendingOracle(suffix=b"A" * 8).encrypt, 16)
    8
    >>> discover_suffix_length(EcbAppendingOracle(suffix=b"A" * 16).encrypt, 16)
    16
    >>> discover_suffix_length(EcbAppendingOracle(suffix=b"").encrypt, 16)
    0

    >>> discover_suffix_length(lambda pt: bytes(16), 16)
    Traceback (most recent call last):
    s2c12_byte_at_a_time_ecb.SuffixLengthNotFoundError: Ciphertext did not grow after adding 16 bytes
    """
    base_len_ct = len(oracle(b""))
    for i in range(1, block_size + 1):
        if len(oracle(bytes(i))) > base_len_ct:
            return base_len_ct - i
    raise SuffixLengthNotFoundError(f"Ciphertext did not grow after adding {block_size} bytes")


def recover_next_byte(oracle: Callable[[bytes], bytes], block_size: int, recovered: bytes) -> int:
    """
    Recover the suffix byte which follows the already recovered bytes

    Prefix the oracle's input with just enough zeroes that the unknown byte is the last byte of a block. Then
    try every candidate for that byte after the zeroes and the known bytes and look for the candidate whose
    ciphertext is identical up to and including that block

    >>> oracle = EcbAppendingOracle(suffix=b"Hack the planet")
    >>> bytes([recover_next_byte(oracle.encrypt, 16, b"")])
    b'H'
    >>> bytes([recover_next_byte(oracle.encrypt, 16, b"Hack the plane")])
    b't'

    >>> key = token_bytes(16)
    >>> recover_next_byte(lambda pt: aes_cbc_encrypt(pt, key, token_bytes(16)), 16, b"")
    Traceback (most recent call last):
    s2c12_byte_at_a_time_ecb.ByteNotFoundError: Failed... Got up to b''
    """
    reference_prefix = bytes(block_size - (len(recovered) % block_size) - 1)
    reference_ct = oracle(reference_prefix)

    # Offset just past the block which ends in the unknown byte
    target_end = len(reference_prefix) + len(recovered) + 1

    for b in range(256):
        ct = oracle(reference_prefix + recovered + bytes([b]))
        if ct[:target_end] == reference_ct[:target_end]:
            return b

    raise ByteNotFoundError(f"Failed... Got up to {recovered!r}", recovered=recovered)


def leak_suffix_from_appending_ecb_oracle(oracle: Callable[[bytes], bytes]) -> bytes:
    """
    >>> flag = base64.b64decode(FLAG.encode())
    >>> oracle = EcbAppendingOracle(suffix=flag)
    >>> res = leak_suffix_from_appending_ecb_oracle(oracle.encrypt)
    >>> res == flag
    True

    >>> oracle = EcbAppendingOracle(suffix=b"YELLOW SUBMARINE" * 2, key=token_bytes(32))
    >>> leak_suffix_from_appending_ecb_oracle(oracle.encrypt)
    b'YELLOW SUBMARINEYELLOW SUBMARINE'
    """
    # Discover block size of oracle and the length of the suffix
    block_size = discover_block_size(oracle)
    suffix_len = discover_suffix_length(oracle, block_size)
    log.debug("Suffix is %d bytes long", suffix_len)

    suffix = bytearray()
    for _ in range(suffix_len):
        suffix.append(recover_next_byte(oracle, block_size, bytes(suffix)))
        log.debug("Recovered %r", bytes(suffix))

    return bytes(suffix)


def main():
    logging.basicConfig(level=logging.INFO)

    flag = base64.b64decode(FLAG.encode())

    oracle = EcbAppendingOracle(suffix=flag)
    res = leak_suffix_from_appending_ecb_oracle(oracle.encrypt)
    log.info("Recovered %d bytes", len(res))
    print(res.decode())


if __name__ == "__main__":
    main()
