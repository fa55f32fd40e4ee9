import base64
import binascii
import logging
import secrets
from typing import Any, Callable, Optional

from .algorithm import OTPAlgorithm
from .exceptions import DecodeError, KeyFormatError, KeyLengthError

logger = logging.getLogger(__name__)

# RFC 4226 section 4: at least 128 bits, 160 recommended.
STRICT_MIN_BYTES = 16
# What most authenticator apps will still accept.
LENIENT_MIN_BYTES = 10


def _pad(encoded: str, block: int) -> str:
    # The otpauth scheme and many tools drop padding, the decoders want it back.
    missing_padding = len(encoded) % block
    if missing_padding != 0:
        encoded += "=" * (block - missing_padding)
    return encoded


class OTPKey(object):
    """
    The shared secret of an HOTP/TOTP generator, held as raw bytes.

    Instances are immutable; equality and hashing are over the raw bytes.
    """

    __slots__ = ("_key",)

    def __init__(self, key: Any, strict: bool = True) -> None:
        """
        :param key: the raw secret material
        :param strict: if True require at least 128 bits as RFC 4226 does,
            otherwise accept keys down to 80 bits
        """
        if not isinstance(key, (bytes, bytearray, memoryview)):
            raise KeyFormatError("Invalid key format, expected raw bytes but got {}".format(type(key).__name__))
        key = bytes(key)
        if strict:
            if len(key) < STRICT_MIN_BYTES:
                raise KeyLengthError(
                    "RFC 4226 requires key length of at least 128 bits and recommends key length of 160 bits. "
                    "If you need to use lower key length disable strict mode."
                )
        elif len(key) < LENIENT_MIN_BYTES:
            raise KeyLengthError(
                "Key length must be at least 80 bits. "
                "RFC 4226 requires key length of at least 128 bits and recommends key length of 160 bits."
            )
        object.__setattr__(self, "_key", key)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("OTPKey is immutable")

    def __reduce__(self) -> tuple:
        # copy and pickle rebuild through __init__; the length was already checked.
        return (OTPKey, (self._key, False))

    @classmethod
    def from_bytes(cls, key: bytes, strict: bool = True) -> "OTPKey":
        return cls(key, strict=strict)

    @classmethod
    def from_hex(cls, hex_decimal: str, strict: bool = True) -> "OTPKey":
        """Upper or lower case hex digits, no separators."""
        try:
            raw = binascii.unhexlify(hex_decimal)
        except (binascii.Error, TypeError, ValueError) as e:
            raise DecodeError("Invalid hex encoded key") from e
        return cls(raw, strict=strict)

    @classmethod
    def from_base64(cls, encoded: str, strict: bool = True) -> "OTPKey":
        """Standard alphabet, with or without padding."""
        try:
            raw = base64.b64decode(_pad(encoded, 4), validate=True)
        except (binascii.Error, TypeError, ValueError) as e:
            raise DecodeError("Invalid base64 encoded key") from e
        return cls(raw, strict=strict)

    @classmethod
    def from_base64_url(cls, encoded: str, strict: bool = True) -> "OTPKey":
        """URL-safe alphabet, with or without padding."""
        try:
            raw = base64.b64decode(_pad(encoded, 4), altchars=b"-_", validate=True)
        except (binascii.Error, TypeError, ValueError) as e:
            raise DecodeError("Invalid URL-safe base64 encoded key") from e
        return cls(raw, strict=strict)

    @classmethod
    def from_base32(cls, encoded: str, strict: bool = True) -> "OTPKey":
        """
        Standard RFC 4648 alphabet, case insensitive, padding optional.

        "JBSWY3DPEHPK3PXP" -> b"Hello!\\xde\\xad\\xbe\\xef"
        """
        try:
            raw = base64.b32decode(_pad(encoded, 8), casefold=True)
        except (binascii.Error, TypeError, ValueError) as e:
            raise DecodeError("Invalid base32 encoded key") from e
        return cls(raw, strict=strict)

    @classmethod
    def from_base32_hex(cls, encoded: str, strict: bool = True) -> "OTPKey":
        """Extended hex alphabet (0-9, A-V), case insensitive, padding optional."""
        try:
            raw = base64.b32hexdecode(_pad(encoded, 8), casefold=True)
        except (binascii.Error, TypeError, ValueError) as e:
            raise DecodeError("Invalid base32hex encoded key") from e
        return cls(raw, strict=strict)

    @classmethod
    def random(
        cls,
        algorithm: OTPAlgorithm,
        key_length: Optional[int] = None,
        strict: bool = True,
        randbytes: Optional[Callable[[int], bytes]] = None,
    ) -> "OTPKey":
        """
        Generates a random key.

        :param algorithm: the algorithm the key is meant for
        :param key_length: length in bits, a multiple of 8. If omitted the
            algorithm's default length is used and ``strict`` is ignored.
        :param strict: length validation mode for an explicit ``key_length``
        :param randbytes: source of random bytes, defaults to
            :func:`secrets.token_bytes`
        :returns: OTPKey
        """
        if key_length is None:
            key_length = algorithm.default_key_length
            strict = False
        if key_length <= 0 or key_length % 8 != 0:
            raise ValueError("key_length must be a positive multiple of 8 bits")
        if randbytes is None:
            randbytes = secrets.token_bytes
        logger.debug("Generating %d bit random key for %s", key_length, algorithm.uri_name)
        return cls(randbytes(key_length // 8), strict=strict)

    @classmethod
    def random_strong(
        cls,
        algorithm: OTPAlgorithm,
        randbytes: Optional[Callable[[int], bytes]] = None,
    ) -> "OTPKey":
        """Generates a random key of the algorithm's strong length."""
        return cls.random(algorithm, algorithm.strong_key_length, strict=False, randbytes=randbytes)

    def to_bytes(self) -> bytes:
        return self._key

    def to_hex(self) -> str:
        return binascii.hexlify(self._key).decode("ascii")

    def to_base64(self) -> str:
        return base64.b64encode(self._key).decode("ascii")

    def to_base64_without_padding(self) -> str:
        return self.to_base64().rstrip("=")

    def to_base64_url(self) -> str:
        return base64.urlsafe_b64encode(self._key).decode("ascii")

    def to_base64_url_without_padding(self) -> str:
        return self.to_base64_url().rstrip("=")

    def to_base32(self) -> str:
        return base64.b32encode(self._key).decode("ascii")

    def to_base32_without_padding(self) -> str:
        return self.to_base32().rstrip("=")

    def to_base32_hex(self) -> str:
        return base64.b32hexencode(self._key).decode("ascii")

    def to_base32_hex_without_padding(self) -> str:
        return self.to_base32_hex().rstrip("=")

    @property
    def byte_length(self) -> int:
        return len(self._key)

    @property
    def key_length(self) -> int:
        """Length of the key in bits."""
        return len(self._key) * 8

    def __len__(self) -> int:
        return len(self._key)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OTPKey):
            return NotImplemented
        return self._key == other._key

    def __hash__(self) -> int:
        return hash(self._key)

    def __repr__(self) -> str:
        # Never print the secret itself.
        return "OTPKey(<{} bits>)".format(self.key_length)

    def __str__(self) -> str:
        return self.to_base32()
