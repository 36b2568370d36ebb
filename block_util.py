from typing import List
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from xor_util import chunkify, fixed_xor

# AES
BLOCK_SIZE = 16
KEY_SIZES = (16, 24, 32)


class InvalidKeyLengthError(ValueError):
    pass


class UnalignedInputError(ValueError):
    pass


class InvalidIVLengthError(ValueError):
    pass


class InvalidBlockSizeError(ValueError):
    pass


class PaddingError(Exception):
    pass


def _aes(key: bytes) -> Cipher:
    if len(key) not in KEY_SIZES:
        raise InvalidKeyLengthError(f"Invalid key size ({len(key) * 8}) for AES.")
    return Cipher(algorithms.AES(key), modes.ECB())


def _check_aligned(data: bytes) -> None:
    if len(data) % BLOCK_SIZE != 0:
        raise UnalignedInputError("The length of the provided data is not a multiple of the block length.")


def encrypt_block(key: bytes, block: bytes) -> bytes:
    """
    Encrypt exactly one block using AES with the given key

    >>> encrypt_block(bytes(16), bytes(16)).hex()
    '66e94bd4ef8a2c3b884cfa59ca342b2e'

    >>> encrypt_block(b"too short", bytes(16))
    Traceback (most recent call last):
    block_util.InvalidKeyLengthError: Invalid key size (72) for AES.

    >>> encrypt_block(bytes(16), b"too short")
    Traceback (most recent call last):
    block_util.UnalignedInputError: Expected a block of 16 bytes, got 9
    """
    if len(block) != BLOCK_SIZE:
        raise UnalignedInputError(f"Expected a block of {BLOCK_SIZE} bytes, got {len(block)}")
    encryptor = _aes(key).encryptor()
    return encryptor.update(block) + encryptor.finalize()


def decrypt_block(key: bytes, block: bytes) -> bytes:
    """
    >>> decrypt_block(bytes(16), bytes.fromhex('66e94bd4ef8a2c3b884cfa59ca342b2e')) == bytes(16)
    True
    """
    if len(block) != BLOCK_SIZE:
        raise UnalignedInputError(f"Expected a block of {BLOCK_SIZE} bytes, got {len(block)}")
    decryptor = _aes(key).decryptor()
    return decryptor.update(block) + decryptor.finalize()


def pad_pkcs7(data: bytes, block_size: int) -> bytes:
    """
    >>> pad_pkcs7(b"YELLOW SUBMARINE", 20)
    b'YELLOW SUBMARINE\\x04\\x04\\x04\\x04'
    >>> pad_pkcs7(b"01234", 5)
    b'01234\\x05\\x05\\x05\\x05\\x05'
    >>> pad_pkcs7(b"YELLOW SUBMARINE", 17)
    b'YELLOW SUBMARINE\\x01'
    >>> pad_pkcs7(b"YELLOW SUBMARINE", 256)
    Traceback (most recent call last):
    block_util.InvalidBlockSizeError: invalid block size 256
    """
    if not 0 < block_size < 256:
        raise InvalidBlockSizeError(f"invalid block size {block_size}")
    num_padding_bytes = block_size - len(data) % block_size
    return data + bytes([num_padding_bytes] * num_padding_bytes)


def unpad_pkcs7(data: bytes, strict: bool = False) -> bytes:
    """
    Strip PKCS#7 padding. Only the final byte is validated unless strict is set, in which case every padding
    byte must hold the padding length

    >>> unpad_pkcs7(b"Hello, world!\\x02\\x02")
    b'Hello, world!'
    >>> unpad_pkcs7(pad_pkcs7(b"Beware of the hazmat", 100))
    b'Beware of the hazmat'
    >>> unpad_pkcs7(pad_pkcs7(b"", 16))
    b''
    >>> unpad_pkcs7(b"")
    b''
    >>> unpad_pkcs7(b"Hello, world!\\x00")
    Traceback (most recent call last):
    block_util.PaddingError: Bad padding in b'Hello, world!\\x00'
    >>> unpad_pkcs7(b"\\x05\\x05")
    Traceback (most recent call last):
    block_util.PaddingError: Bad padding in b'\\x05\\x05'

    The relaxed check lets a mangled padding run through

    >>> unpad_pkcs7(b"Hello, world!\\x01\\x02")
    b'Hello, world!'
    >>> unpad_pkcs7(b"Hello, world!\\x01\\x02", strict=True)
    Traceback (most recent call last):
    block_util.PaddingError: Bad padding in b'Hello, world!\\x01\\x02'
    """
    if not data:
        return data
    num_padding_bytes = data[-1]
    if num_padding_bytes == 0 or num_padding_bytes > len(data):
        raise PaddingError(f"Bad padding in {data!r}")
    if strict:
        if any(b != num_padding_bytes for b in data[-1*num_padding_bytes:]):
            raise PaddingError(f"Bad padding in {data!r}")
    return data[:-1*num_padding_bytes]


def ecb_encrypt(plaintext: bytes, key: bytes) -> bytes:
    """
    Encrypt block-aligned plaintext using AES in ECB mode. Every block is encrypted on its own

    >>> key = b"YELLOW SUBMARINE"
    >>> ct = ecb_encrypt(b"A" * 16 + b"B" * 16 + b"A" * 16, key)
    >>> ct[:16] == ct[32:] != ct[16:32]
    True

    >>> ecb_encrypt(b"too short", key=bytes(16))
    Traceback (most recent call last):
    block_util.UnalignedInputError: The length of the provided data is not a multiple of the block length.
    """
    _check_aligned(plaintext)
    return b"".join(encrypt_block(key, block) for block in chunkify(plaintext, BLOCK_SIZE))


def ecb_decrypt(ciphertext: bytes, key: bytes) -> bytes:
    """
    >>> key = b"YELLOW SUBMARINE"
    >>> plaintext = b"Sixteen byte msg" * 3
    >>> ecb_decrypt(ecb_encrypt(plaintext, key), key) == plaintext
    True

    >>> ecb_decrypt(b"A" * 17, key)
    Traceback (most recent call last):
    block_util.UnalignedInputError: The length of the provided data is not a multiple of the block length.
    """
    _check_aligned(ciphertext)
    return b"".join(decrypt_block(key, block) for block in chunkify(ciphertext, BLOCK_SIZE))


def cbc_encrypt(plaintext: bytes, key: bytes, iv: bytes) -> bytes:
    """
    Encrypt block-aligned plaintext using AES in CBC mode (the hard way)

    Each plaintext block is XOR'd with the previous ciphertext block (the IV for the first block) before
    being encrypted

    >>> key = b"YELLOW SUBMARINE"
    >>> iv = bytes(16)
    >>> ct = cbc_encrypt(b"A" * 48, key, iv)
    >>> len(set(chunkify(ct, 16)))
    3
    >>> ct[:16] == ecb_encrypt(b"A" * 16, key)
    True

    >>> cbc_encrypt(b"A" * 15, key, iv)
    Traceback (most recent call last):
    block_util.UnalignedInputError: The length of the provided data is not a multiple of the block length.

    >>> cbc_encrypt(b"A" * 16, key, b"too short")
    Traceback (most recent call last):
    block_util.InvalidIVLengthError: IV must be 16 bytes, got 9
    """
    _check_aligned(plaintext)
    if len(iv) != BLOCK_SIZE:
        raise InvalidIVLengthError(f"IV must be {BLOCK_SIZE} bytes, got {len(iv)}")

    ciphertext: List[bytes] = []
    prev_block = iv
    for chunk in chunkify(plaintext, BLOCK_SIZE):
        prev_block = encrypt_block(key, fixed_xor(chunk, prev_block))
        ciphertext.append(prev_block)

    return b"".join(ciphertext)


def cbc_decrypt(ciphertext: bytes, key: bytes, iv: bytes) -> bytes:
    """
    Decrypt block-aligned ciphertext using AES in CBC mode (the hard way)

    >>> key = bytes([2] * 16)
    >>> iv = bytes([3] * 16)
    >>> ct = bytes([1] * 16 * 100)
    >>> cbc_encrypt(cbc_decrypt(ct, key, iv), key, iv) == ct
    True

    >>> plaintext = b"That's a lotta words, too bad I!"
    >>> cbc_decrypt(cbc_encrypt(plaintext, key, iv), key, iv) == plaintext
    True

    >>> cbc_decrypt(b"A" * 15, key, iv)
    Traceback (most recent call last):
    block_util.UnalignedInputError: The length of the provided data is not a multiple of the block length.

    >>> cbc_decrypt(b"A" * 16, key, iv=b"")
    Traceback (most recent call last):
    block_util.InvalidIVLengthError: IV must be 16 bytes, got 0
    """
    _check_aligned(ciphertext)
    if len(iv) != BLOCK_SIZE:
        raise InvalidIVLengthError(f"IV must be {BLOCK_SIZE} bytes, got {len(iv)}")

    plaintext: List[bytes] = []
    prev_block = iv
    for chunk in chunkify(ciphertext, BLOCK_SIZE):
        plaintext.append(fixed_xor(decrypt_block(key, chunk), prev_block))
        # Chain on the ciphertext we were given, not on what we produced
        prev_block = chunk

    return b"".join(plaintext)


def aes_ecb_encrypt(plaintext: bytes, key: bytes) -> bytes:
    """
    Encrypt plaintext using AES in ECB mode using the given key

    Automatically pads plaintext using PKCS#7

    >>> plaintext = b"Beware of hazardous materials"
    >>> key = b"YELLOW SUBMARINE"
    >>> aes_ecb_decrypt(aes_ecb_encrypt(plaintext, key), key) == plaintext
    True

    >>> aes_ecb_encrypt(b"AAAA", key=b"too short")
    Traceback (most recent call last):
    block_util.InvalidKeyLengthError: Invalid key size (72) for AES.
    """
    return ecb_encrypt(pad_pkcs7(plaintext, BLOCK_SIZE), key)


def aes_ecb_decrypt(ciphertext: bytes, key: bytes, strict: bool = False) -> bytes:
    """
    Decrypt ciphertext using AES in ECB mode using the given key

    Automatically unpads plaintext using PKCS#7

    >>> key = b"YELLOW SUBMARINE"
    >>> ciphertext = aes_ecb_encrypt(b"Play that funky music", key)
    >>> aes_ecb_decrypt(ciphertext, key, strict=True)
    b'Play that funky music'

    >>> aes_ecb_decrypt(b"too short", key)
    Traceback (most recent call last):
    block_util.UnalignedInputError: The length of the provided data is not a multiple of the block length.
    """
    return unpad_pkcs7(ecb_decrypt(ciphertext, key), strict=strict)


def aes_cbc_encrypt(plaintext: bytes, key: bytes, iv: bytes) -> bytes:
    """
    Encrypt plaintext using AES in CBC mode, automatically padding it using PKCS#7

    >>> key = b"YELLOW SUBMARINE"
    >>> iv = bytes(16)
    >>> plaintext = b"That's a lotta words, too bad I ain't reading em"
    >>> ciphertext = aes_cbc_encrypt(plaintext, key=key, iv=iv)
    >>> len(ciphertext)
    64
    >>> aes_cbc_decrypt(ciphertext, key=key, iv=iv) == plaintext
    True
    """
    return cbc_encrypt(pad_pkcs7(plaintext, BLOCK_SIZE), key, iv)


def aes_cbc_decrypt(ciphertext: bytes, key: bytes, iv: bytes, strict: bool = False) -> bytes:
    return unpad_pkcs7(cbc_decrypt(ciphertext, key, iv), strict=strict)


def is_ecb(ciphertext: bytes, block_size: int) -> bool:
    """
    Return True if any block_size block of ciphertext appears more than once. ECB encrypts identical
    plaintext blocks to identical ciphertext blocks, while CBC's chaining makes a repeat vanishingly unlikely.
    Ciphertext that isn't a whole number of blocks can't have come from ECB, so it is never flagged

    >>> key = bytes(16)
    >>> is_ecb(ecb_encrypt(bytes(160), key), 16)
    True
    >>> is_ecb(cbc_encrypt(bytes(160), key, iv=bytes(16)), 16)
    False
    >>> is_ecb(b"A" * 16 + b"B" * 16 + b"C" * 16 + b"B" * 16, 16)
    True
    >>> is_ecb(b"A" * 16, 16)
    False
    >>> is_ecb(b"", 16)
    False
    >>> is_ecb(b"A" * 32 + b"B", 16)
    False
    """
    if len(ciphertext) % block_size:
        return False

    seen = set()
    for block in chunkify(ciphertext, block_size):
        if block in seen:
            return True
        seen.add(block)
    return False


def identify_ciphertexts_encrypted_with_ecb(ciphertexts: List[bytes], block_size: int) -> List[bytes]:
    """
    Given a list of ciphertexts, return the ciphertexts which were suspected to have been encrypted using
    a block cipher in ECB mode.

    >>> key = b"YELLOW SUBMARINE"
    >>> ecb_ct = ecb_encrypt(b"YELLOW SUBMARINE" * 4, key)
    >>> cbc_ct = cbc_encrypt(b"YELLOW SUBMARINE" * 4, key, iv=bytes(16))
    >>> identify_ciphertexts_encrypted_with_ecb([cbc_ct, ecb_ct, cbc_ct[::-1]], 16) == [ecb_ct]
    True
    """
    return [ciphertext for ciphertext in ciphertexts if is_ecb(ciphertext, block_size)]
