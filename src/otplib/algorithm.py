import hashlib
from enum import Enum
from typing import Any, Optional


class OTPAlgorithm(Enum):
    """
    Hash functions supported for the HMAC step.

    Each member carries the name used in otpauth URIs, the hashlib name used
    to build the HMAC, and the default and "strong" key lengths (in bits)
    used when generating random keys.
    """

    #        uri_name   hash_name  default  strong
    MD5 = ("MD5", "md5", 160, 160)
    SHA1 = ("SHA1", "sha1", 160, 200)
    SHA256 = ("SHA256", "sha256", 240, 280)
    SHA512 = ("SHA512", "sha512", 480, 520)

    def __init__(self, uri_name: str, hash_name: str, default_key_length: int, strong_key_length: int) -> None:
        self.uri_name = uri_name
        self.hash_name = hash_name
        self.default_key_length = default_key_length
        self.strong_key_length = strong_key_length

    @property
    def digest_size(self) -> int:
        """Size in bytes of the HMAC tag produced with this algorithm."""
        return hashlib.new(self.hash_name).digest_size

    @classmethod
    def find(cls, name: Any) -> Optional["OTPAlgorithm"]:
        """
        Looks up an algorithm by its URI name.

        The match is exact and case sensitive ("SHA1", not "sha1"). Unknown
        names give None rather than an error, so callers can check for support.

        :param name: algorithm name as found in an otpauth URI
        :returns: the matching algorithm or None
        """
        if not isinstance(name, str):
            return None
        return cls.__members__.get(name)

    def __repr__(self) -> str:
        return "OTPAlgorithm.{}".format(self.name)

    def __str__(self) -> str:
        return self.uri_name
