import hmac
import re
from typing import Any, Dict, Optional

from . import utils
from .algorithm import OTPAlgorithm
from .exceptions import InvalidCodeFormatError
from .key import OTPKey

DEFAULT_DIGITS = 6
# 2**31 has ten decimal digits, so ten digit codes are not uniformly spread.
MAX_DIGITS = 9
# The counter is sent as an 8 byte block.
MAX_COUNTER = 2**64

_CODE_PATTERN = re.compile("[0-9]+")


class OTP(object):
    """
    Base class for OTP handlers.

    Holds the (algorithm, digits, key) triple and implements the RFC 4226
    HMAC and truncation steps that HOTP and TOTP share. Instances are
    immutable, so they can be shared between threads.
    """

    protocol = ""

    def __init__(self, algorithm: OTPAlgorithm, digits: int, key: OTPKey) -> None:
        if not isinstance(algorithm, OTPAlgorithm):
            raise ValueError("algorithm must be an OTPAlgorithm")
        if not isinstance(digits, int) or isinstance(digits, bool) or not 1 <= digits <= MAX_DIGITS:
            raise ValueError("digits must be between 1 and {}".format(MAX_DIGITS))
        if not isinstance(key, OTPKey):
            raise ValueError("key must be an OTPKey")
        self._algorithm = algorithm
        self._digits = digits
        self._key = key

    @property
    def algorithm(self) -> OTPAlgorithm:
        return self._algorithm

    @property
    def digits(self) -> int:
        return self._digits

    @property
    def key(self) -> OTPKey:
        return self._key

    def hmac(self, message: bytes) -> bytes:
        """
        Calculates the HMAC of ``message`` with the shared key.

        :param message: the bytes to authenticate, normally an 8 byte counter
        :returns: the authentication tag
        """
        return hmac.new(self._key.to_bytes(), message, self._algorithm.hash_name).digest()

    def generate_for_counter(self, counter: int) -> int:
        """
        :param counter: the HMAC counter value to use as the OTP input.
            Usually either the counter, or the computed integer based on the Unix timestamp
        :returns: the integer code, not yet zero padded
        """
        # Implements RFC 4226 section 5.3
        if not 0 <= counter < MAX_COUNTER:
            raise ValueError("counter must be a non-negative integer below 2**64")
        return self.truncate(self.hmac(self.int_to_bytestring(counter)), self._digits)

    def generate_for_window(self, counter: int, look_ahead_window: int) -> Dict[int, int]:
        """
        Generates the integer codes for ``counter`` and the
        ``look_ahead_window`` counters that follow it.

        :returns: dict mapping each counter to its code, in ascending counter order
        """
        if look_ahead_window < 0:
            raise ValueError("look_ahead_window must be a non-negative integer")
        return {c: self.generate_for_counter(c) for c in range(counter, counter + look_ahead_window + 1)}

    def validate_with_counter(self, counter: int, code: int) -> bool:
        return self._codes_equal(self.generate_for_counter(counter), code)

    def validate_with_window(self, counter: int, look_ahead_window: int, code: int) -> Optional[int]:
        """
        Searches forward from ``counter`` for a counter that produces ``code``.

        Only counters ahead of ``counter`` are tried, never the ones behind it.

        :returns: the gap between the matching counter and ``counter``
            (0..look_ahead_window), or None when nothing matches
        """
        if look_ahead_window < 0:
            raise ValueError("look_ahead_window must be a non-negative integer")
        for c in range(counter, counter + look_ahead_window + 1):
            if self._codes_equal(self.generate_for_counter(c), code):
                return c - counter
        return None

    def _codes_equal(self, expected: int, code: int) -> bool:
        # Compare the padded forms in constant time rather than the ints.
        return utils.strings_equal(
            self.int_to_digits(expected, self._digits),
            self.int_to_digits(code, self._digits),
        )

    @staticmethod
    def truncate(tag: bytes, digits: int) -> int:
        """
        RFC 4226 dynamic truncation.

        The low nibble of the last byte picks an offset (0-15); the four
        bytes starting there are read big-endian with the top bit cleared,
        giving a 31 bit integer, which is reduced modulo 10^digits.

        Tags shorter than 19 bytes (MD5) can pick an offset with fewer than
        four bytes behind it; such offsets wrap around to
        ``offset % (len(tag) - 3)``, so MD5 offsets 13, 14, 15 read from 0, 1, 2.
        Tags of 19 bytes or more are truncated exactly as RFC 4226 says.
        """
        tag = bytearray(tag)
        if len(tag) < 4:
            raise ValueError("HMAC tag of {} bytes is too short to truncate".format(len(tag)))
        offset = tag[-1] & 0xF
        if offset + 4 > len(tag):
            offset %= len(tag) - 3
        code = (
            (tag[offset] & 0x7F) << 24
            | (tag[offset + 1] & 0xFF) << 16
            | (tag[offset + 2] & 0xFF) << 8
            | (tag[offset + 3] & 0xFF)
        )
        return code % 10**digits

    @staticmethod
    def int_to_digits(code: int, digits: int) -> str:
        """
        Formats an integer code as a decimal string of exactly ``digits``
        characters, keeping leading zeros: 7531 -> "007531".
        """
        return str(code).rjust(digits, "0")

    @staticmethod
    def digits_to_int(code: Any) -> int:
        """
        Parses a decimal code string; leading zeros are fine ("007531" -> 7531).

        Only ASCII digits are accepted: no sign, whitespace, ``_`` separators
        or other Unicode digits.

        :raises InvalidCodeFormatError: if ``code`` is not a non-negative base 10 integer
        """
        if not isinstance(code, str) or not _CODE_PATTERN.fullmatch(code):
            raise InvalidCodeFormatError("Invalid code digits given: {!r}".format(code))
        return int(code, 10)

    @staticmethod
    def int_to_bytestring(i: int, padding: int = 8) -> bytes:
        """
        Turns an integer to the OATH specified
        bytestring, which is fed to the HMAC
        along with the secret
        """
        if not 0 <= i < 1 << (8 * padding):
            raise ValueError("{} does not fit in {} bytes".format(i, padding))
        result = bytearray()
        while i != 0:
            result.append(i & 0xFF)
            i >>= 8
        # Bytes come out least significant first; HMAC wants big-endian.
        return bytes(bytearray(reversed(result)).rjust(padding, b"\0"))

    def __eq__(self, other: object) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return self._fields() == other._fields()  # type: ignore

    def __hash__(self) -> int:
        return hash((type(self),) + self._fields())

    def _fields(self) -> tuple:
        return (self._algorithm, self._digits, self._key)
