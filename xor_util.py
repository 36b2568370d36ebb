from collections import Counter
from dataclasses import dataclass
from itertools import cycle
from math import inf, log2
from typing import Callable, Generator, List, Optional


class EmptyInputError(ValueError):
    pass


class UnequalLengthsError(ValueError):
    pass


class InvalidRangeError(ValueError):
    pass


def fixed_xor(b1: bytes, b2: bytes) -> bytes:
    """
    Take two bytes arguments of equal length, return their XOR

    >>> arg1 = bytes.fromhex('1c0111001f010100061a024b53535009181c')
    >>> arg2 = bytes.fromhex('686974207468652062756c6c277320657965')
    >>> fixed_xor(arg1, arg2).hex()
    '746865206b696420646f6e277420706c6179'

    >>> fixed_xor(b"AAAA", b"AAA")
    Traceback (most recent call last):
    xor_util.UnequalLengthsError: Arguments are of different length
    """
    if len(b1) != len(b2):
        raise UnequalLengthsError("Arguments are of different length")
    return bytes(a ^ b for a, b in zip(b1, b2))


def repeating_key_xor(data: bytes, key: bytes) -> bytes:
    """
    Cycle the key and XOR data with it. Encryption and decryption are the same operation

    >>> plaintext = b"Burning 'em, if you ain't quick and nimble\\nI go crazy when I hear a cymbal"
    >>> repeating_key_xor(plaintext, b"ICE").hex()
    '0b3637272a2b2e63622c2e69692a23693a2a3c6324202d623d63343c2a26226324272765272a282b2f20430a652e2c652a3124333a653e2b2027630c692b20283165286326302e27282f'

    >>> repeating_key_xor(b"AAAA", b"")
    Traceback (most recent call last):
    xor_util.EmptyInputError: key must be non-zero length
    """
    if not key:
        raise EmptyInputError("key must be non-zero length")
    return bytes(a ^ b for a, b in zip(data, cycle(key)))


def single_byte_xor(data: bytes, key: int) -> bytes:
    return repeating_key_xor(data, bytes([key]))


def englishness(text: bytes) -> float:
    """
    Give a score for how English-like text is: the fraction of bytes which are a space, 'e', 't' or 'a'.
    Higher score means more English-like input

    >>> englishness(b"eat at tea")
    1.0
    >>> englishness(b"zzzz")
    0.0
    >>> englishness(b"e!")
    0.5
    >>> englishness(b"")
    0
    """
    if not text:
        return 0
    return sum(text.count(c) for c in b" eta") / len(text)


@dataclass
class ScoredDecryptionResult:
    plaintext: bytes
    ciphertext: bytes
    key: int
    score: float

    def __repr__(self):
        return f"ScoredDecryptionResult(plaintext={self.plaintext}, ciphertext={self.ciphertext}, key={self.key:#02x}, score={self.score:.2f})"


def break_single_xor_cipher(ciphertexts: List[bytes],
                            scoring_function: Callable[[bytes], float] = englishness) -> List[ScoredDecryptionResult]:
    """
    Brute-force every single-byte XOR key against every ciphertext

    Return ScoredDecryptionResult's sorted according to the scoring_function function, best first. Results with
    equal scores keep the order in which they were tried

    >>> ciphertext = bytes.fromhex("1b37373331363f78151b7f2b783431333d78397828372d363c78373e783a393b3736")
    >>> break_single_xor_cipher([ciphertext])[0].plaintext
    b"Cooking MC's like a pound of bacon"
    """
    decryptions: List[ScoredDecryptionResult] = []

    for ciphertext in ciphertexts:
        for k in range(256):
            plaintext = single_byte_xor(ciphertext, k)
            decryptions.append(ScoredDecryptionResult(plaintext=plaintext,
                                                      ciphertext=ciphertext,
                                                      key=k,
                                                      score=scoring_function(plaintext)))

    return sorted(decryptions, key=lambda x: x.score, reverse=True)


def find_single_xor_key(ciphertext: bytes) -> int:
    """
    Return the single-byte key whose decryption of ciphertext scores best for englishness. The lowest key
    wins a tie

    >>> find_single_xor_key(bytes.fromhex("1b37373331363f78151b7f2b783431333d78397828372d363c78373e783a393b3736"))
    88

    A space, "e", "t" and "a" all score the same, and the space is tried first

    >>> hex(find_single_xor_key(b"\\x00"))
    '0x20'

    >>> find_single_xor_key(b"")
    Traceback (most recent call last):
    xor_util.EmptyInputError: ciphertext must be non-zero length
    """
    if not ciphertext:
        raise EmptyInputError("ciphertext must be non-zero length")
    return break_single_xor_cipher([ciphertext])[0].key


def decrypt_single_xor(ciphertext: bytes) -> bytes:
    """
    >>> decrypt_single_xor(single_byte_xor(b"a cat and a hat", 0x42))
    b'a cat and a hat'
    """
    return single_byte_xor(ciphertext, find_single_xor_key(ciphertext))


def shannon_entropy(data: bytes) -> float:
    """
    Return the Shannon entropy, in bits per byte, of the distribution of byte values in data

    >>> shannon_entropy(b"aaaa")
    0.0
    >>> shannon_entropy(b"abab")
    1.0
    >>> shannon_entropy(bytes(range(256)))
    8.0
    >>> shannon_entropy(b"")
    0
    """
    if not data:
        return 0
    return sum(-(count / len(data)) * log2(count / len(data)) for count in Counter(data).values())


def detect_single_xor_ciphertext(candidates: List[bytes]) -> bytes:
    """
    Given many candidate ciphertexts, return the one most likely to be single-byte XOR encrypted English.
    XOR with a single byte preserves the shape of the plaintext's byte distribution, and English has far
    lower entropy than random data

    >>> from secrets import token_bytes
    >>> needle = single_byte_xor(b"Now that the party is jumping\\n", 0x35)
    >>> haystack = [token_bytes(30) for _ in range(100)]
    >>> haystack.insert(42, needle)
    >>> detect_single_xor_ciphertext(haystack) == needle
    True
    >>> decrypt_single_xor(detect_single_xor_ciphertext(haystack))
    b'Now that the party is jumping\\n'

    >>> detect_single_xor_ciphertext([])
    Traceback (most recent call last):
    xor_util.EmptyInputError: No candidate ciphertexts given
    """
    if not candidates:
        raise EmptyInputError("No candidate ciphertexts given")

    best_entropy = inf
    best_candidate = candidates[0]
    for candidate in candidates:
        entropy = shannon_entropy(candidate)
        if entropy < best_entropy:
            best_entropy = entropy
            best_candidate = candidate
    return best_candidate


def bitwise_hamming_distance(b1: bytes, b2: bytes) -> int:
    """
    Return the number of bits that must be changed in b1 to get b2

    >>> bitwise_hamming_distance(b"HELLO", b"JELLO")
    1
    >>> bitwise_hamming_distance(b"AAAAA", b"JJJJA")
    12
    >>> bitwise_hamming_distance(b"this is a test", b"wokka wokka!!!")
    37
    >>> bitwise_hamming_distance(b"AAAA", b"AAA")
    Traceback (most recent call last):
    xor_util.UnequalLengthsError: Inputs are of different length
    """
    if len(b1) != len(b2):
        raise UnequalLengthsError("Inputs are of different length")
    return sum(bin(a ^ b).count("1") for a, b in zip(b1, b2))


def chunkify(b: bytes, chunk_size: int) -> Generator[bytes, None, None]:
    """
    Yield chunk_size sized chunks from b

    >>> list(chunkify(b"ABCD", 2))
    [b'AB', b'CD']

    >>> list(chunkify(b"ABCDE", 2))
    [b'AB', b'CD', b'E']
    """
    for i in range(0, len(b), chunk_size):
        yield b[i:i + chunk_size]


def estimate_repeating_xor_key_size(ciphertext: bytes, min_size: int = 2, max_size: int = 40) -> int:
    """
    Guess the length of the key of a repeating-key XOR ciphertext

    For every candidate size n, take the first 4n bytes and the next 4n bytes and measure the bitwise hamming
    distance between them, normalised by n. Bytes n apart were XOR'd with the same key byte, so when n is
    the key length the key cancels out and only the (similar-looking) plaintext bytes differ

    >>> estimate_repeating_xor_key_size(repeating_key_xor(b" " * 400, b"secrets"), 2, 40)
    7

    Every size scores the same when there's nothing to go on, so the smallest wins

    >>> estimate_repeating_xor_key_size(b"\\x00" * 400, 2, 40)
    2

    >>> estimate_repeating_xor_key_size(b"A" * 100, 5, 2)
    Traceback (most recent call last):
    xor_util.InvalidRangeError: Invalid key size range [5, 2]

    >>> estimate_repeating_xor_key_size(b"A" * 100, 2, 40)
    Traceback (most recent call last):
    xor_util.InvalidRangeError: Need at least 320 bytes of ciphertext to try key sizes up to 40, got 100
    """
    if min_size < 1 or min_size > max_size:
        raise InvalidRangeError(f"Invalid key size range [{min_size}, {max_size}]")
    if 8 * max_size > len(ciphertext):
        raise InvalidRangeError(f"Need at least {8 * max_size} bytes of ciphertext to try key sizes up to "
                                f"{max_size}, got {len(ciphertext)}")

    best_size = min_size
    best_score = inf
    for n in range(min_size, max_size + 1):
        score = bitwise_hamming_distance(ciphertext[:4 * n], ciphertext[4 * n:8 * n]) / n
        if score < best_score:
            best_size = n
            best_score = score
    return best_size


def break_repeating_key_xor(ciphertext: bytes, key_length: Optional[int] = None) -> bytes:
    """
    Return the best-guess key for a ciphertext which has been encrypted using repeating key XOR

    @param ciphertext: The encrypted ciphertext
    @param key_length: (Optional) the key length, if known. If unknown, it is estimated over sizes 2 to 40

    >>> import hashlib, os
    >>> path = os.path.join(os.path.dirname(__file__), "data", "prose.txt")
    >>> with open(path, "rb") as f:
    ...     plaintext = f.read()
    >>> key = hashlib.sha256(b"You wouldn't batch an RPC call").digest()[:29]
    >>> ciphertext = repeating_key_xor(plaintext, key)
    >>> break_repeating_key_xor(ciphertext) == key
    True
    >>> break_repeating_key_xor(ciphertext, key_length=29) == key
    True
    """
    if key_length is None:
        key_length = estimate_repeating_xor_key_size(ciphertext, 2, 40)

    # Every key_length'th byte was XOR'd with the same key byte
    columns = [ciphertext[i::key_length] for i in range(key_length)]

    return bytes(find_single_xor_key(column) for column in columns)
