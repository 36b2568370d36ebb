#!/usr/bin/env python3
import logging
from dataclasses import dataclass
from secrets import token_bytes
from typing import Callable, Dict, Optional
from urllib.parse import parse_qsl, quote_plus, urlencode

from block_util import BLOCK_SIZE, aes_ecb_decrypt, aes_ecb_encrypt

"""
ECB cut-and-paste

Write a k=v parsing routine, as if for a structured cookie. Now write a function that encodes a user profile in
that format, given an email address. You should have something like:

profile_for("foo@bar.com")

... and it should produce:

email=foo@bar.com&uid=10&role=user

Your "profile_for" function should not allow encoding metacharacters (& and =). Eat them, quote them, whatever you
want to do, but don't let people set their email address to "foo@bar.com&role=admin".

Using only the user input to profile_for() (as an oracle to generate "valid" ciphertexts) and the ciphertexts
themselves, make a role=admin profile.
"""

log = logging.getLogger(__name__)

DEFAULT_UID = 10
DEFAULT_ROLE = "user"


def build_record(fields: Dict[str, object]) -> str:
    """
    Serialise fields, in order, as a querystring. Values are quoted so they can't smuggle in extra fields

    >>> build_record({"foo": "bar", "baz": "qux", "zap": "zazzle"})
    'foo=bar&baz=qux&zap=zazzle'
    >>> build_record({"email": "foo@bar.com&role=admin"})
    'email=foo%40bar.com%26role%3Dadmin'
    """
    return urlencode(fields)


def parse_record(record: str) -> Dict[str, str]:
    """
    >>> parse_record("foo=bar&baz=qux&zap=zazzle")
    {'foo': 'bar', 'baz': 'qux', 'zap': 'zazzle'}
    >>> parse_record(build_record({"email": "foo@bar.com&role=admin", "role": "user"}))
    {'email': 'foo@bar.com&role=admin', 'role': 'user'}
    """
    return dict(parse_qsl(record))


def profile_for(email: str, uid: int = DEFAULT_UID, role: str = DEFAULT_ROLE) -> str:
    """
    >>> profile_for("foo@bar.com")
    'email=foo%40bar.com&uid=10&role=user'

    >>> profile_for("foo@bar.com=&\\x0b")
    'email=foo%40bar.com%3D%26%0B&uid=10&role=user'

    >>> all(profile_for(email).count("&") == 2 and profile_for(email).count("=") == 3
    ...     for email in ["a&a", "b=b", "c=&c", "=", "&", "&&&==="])
    True
    """
    profile = {
        "email": email,
        "uid": uid,
        "role": role,
    }
    return build_record(profile)


class ProfileManager:
    """
    Hands out ECB-encrypted user profiles and checks them when they come back
    """
    verbose: bool

    def __init__(self, key: Optional[bytes] = None, verbose: bool = False):
        self._key = key if key is not None else token_bytes(BLOCK_SIZE)
        self.verbose = verbose

    def encrypt(self, email: str) -> bytes:
        """
        Serialize email into a profile querystring, encrypt it using AES ECB, and return it
        """
        profile_qs = profile_for(email)
        ct = aes_ecb_encrypt(profile_qs.encode(), key=self._key)
        if self.verbose:
            print(f"Encrypt: {email!r} --> {profile_qs!r} --> {ct!r}")
        return ct

    def decrypt(self, encrypted_qs: bytes) -> Dict[str, str]:
        """
        Decrypt using AES ECB, check the padding and deserialize to a dict

        >>> manager = ProfileManager()
        >>> manager.decrypt(manager.encrypt("foo@bar.com"))
        {'email': 'foo@bar.com', 'uid': '10', 'role': 'user'}
        """
        pt = aes_ecb_decrypt(encrypted_qs, key=self._key, strict=True).decode()
        profile = parse_record(pt)
        if self.verbose:
            print(f"Decrypt: {encrypted_qs!r} --> {pt!r} --> {profile}")
        return profile

    def is_admin(self, encrypted_qs: bytes) -> bool:
        """
        A profile that doesn't decrypt to text isn't an admin's

        >>> manager = ProfileManager()
        >>> manager.is_admin(manager.encrypt("foo@bar.com&role=admin"))
        False

        >>> ct = manager.encrypt("foo@bar.com")
        >>> manager.is_admin(ct[:16] + bytes(16) + ct[32:])
        False
        """
        try:
            profile = self.decrypt(encrypted_qs)
        except UnicodeDecodeError:
            return False
        return profile.get("role") == "admin"


@dataclass
class ForgeryPlan:
    """
    The three queries of a cut-and-paste forgery and where, in each of their ciphertexts, the blocks to splice
    together live. Every offset is a multiple of block_size
    """
    block_size: int
    # Record ends on a block boundary just after "role="
    head_email: str
    head_length: int
    # Record has a block starting with the forged role at role_offset
    role_email: str
    role_offset: int
    # Record fills its blocks exactly, so its padding is a block of its own at donor_offset
    donor_email: str
    donor_offset: int

    def __post_init__(self):
        for name in ("head_length", "role_offset", "donor_offset"):
            if getattr(self, name) % self.block_size != 0:
                raise ValueError(f"{name} {getattr(self, name)} is not block aligned")


def plan_profile_forgery(role: str = "admin", block_size: int = BLOCK_SIZE, filler: str = "A") -> ForgeryPlan:
    """
    Work out which emails to submit to line things up on block boundaries. Only the public record format is
    needed to do this, not the key

    >>> plan = plan_profile_forgery()
    >>> plan.head_email, plan.head_length
    ('AAAAAAAAAAAAA', 32)
    >>> profile_for(plan.head_email)[:plan.head_length]
    'email=AAAAAAAAAAAAA&uid=10&role='
    >>> profile_for(plan.role_email)[plan.role_offset:plan.role_offset + 16]
    'admin&uid=10&rol'
    >>> len(profile_for(plan.donor_email)) == plan.donor_offset
    True

    >>> plan_profile_forgery(role="ZZ")
    Traceback (most recent call last):
    ValueError: Role 'ZZ' would be followed by another role assignment
    >>> plan_profile_forgery(role="Z" * 17)
    Traceback (most recent call last):
    ValueError: Role 'ZZZZZZZZZZZZZZZZZ' must fit in a single 16 byte block
    >>> plan_profile_forgery(role="admin&")
    Traceback (most recent call last):
    ValueError: Role 'admin&' would be escaped
    >>> plan_profile_forgery(filler="=")
    Traceback (most recent call last):
    ValueError: Filler '=' would be escaped
    """
    if quote_plus(role) != role:
        raise ValueError(f"Role {role!r} would be escaped")
    if quote_plus(filler) != filler:
        raise ValueError(f"Filler {filler!r} would be escaped")
    if not 0 < len(role) <= block_size:
        raise ValueError(f"Role {role!r} must fit in a single {block_size} byte block")

    email_offset = len(build_record({"email": ""}))

    # Push the role to the start of a block
    filler_len = -email_offset % block_size
    role_email = filler * filler_len + role
    role_offset = email_offset + filler_len
    record = profile_for(role_email)
    if len(record) < role_offset + block_size:
        raise ValueError(f"Role {role!r} is too close to the end of the record")
    if "role" in parse_record(record[role_offset + len(role):role_offset + block_size]):
        raise ValueError(f"Role {role!r} would be followed by another role assignment")

    # Grow the email until the role's value starts on a block boundary
    for head_len in range(block_size):
        head_email = filler * head_len
        head_length = len(profile_for(head_email)) - len(DEFAULT_ROLE)
        if head_length % block_size == 0:
            break

    # Grow the email until the record exactly fills its blocks
    for donor_len in range(block_size):
        donor_email = filler * donor_len
        donor_offset = len(profile_for(donor_email))
        if donor_offset % block_size == 0:
            break

    return ForgeryPlan(block_size=block_size,
                       head_email=head_email,
                       head_length=head_length,
                       role_email=role_email,
                       role_offset=role_offset,
                       donor_email=donor_email,
                       donor_offset=donor_offset)


def craft_profile_ct(oracle: Callable[[str], bytes], role: str = "admin", block_size: int = BLOCK_SIZE) -> bytes:
    """
    Splice together the blocks of three ciphertexts to get

    email=AAAAAAAAAAAAA&uid=10&role= | admin&uid=10&rol | <16 bytes of padding>

    >>> manager = ProfileManager()
    >>> profile = craft_profile_ct(oracle=manager.encrypt, role="admin")
    >>> manager.is_admin(profile)
    True
    >>> manager.decrypt(profile)["role"]
    'admin'

    >>> manager.decrypt(craft_profile_ct(oracle=manager.encrypt, role="superuser"))["role"]
    'superuser'
    """
    plan = plan_profile_forgery(role=role, block_size=block_size)
    log.debug("Forgery plan: %s", plan)

    head = oracle(plan.head_email)[:plan.head_length]
    role_block = oracle(plan.role_email)[plan.role_offset:plan.role_offset + block_size]
    padding_block = oracle(plan.donor_email)[plan.donor_offset:plan.donor_offset + block_size]

    return head + role_block + padding_block


def main():
    logging.basicConfig(level=logging.INFO)

    manager = ProfileManager(verbose=True)
    profile = craft_profile_ct(oracle=manager.encrypt, role="admin")
    print(f"Are we admin?: {manager.is_admin(profile)}")


if __name__ == "__main__":
    main()
