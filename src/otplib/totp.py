import calendar
import datetime
import time
from typing import Callable, Dict, Mapping, Optional, Union

from . import utils
from .algorithm import OTPAlgorithm
from .exceptions import InvalidURIError
from .key import OTPKey
from .otp import DEFAULT_DIGITS, OTP

DEFAULT_PERIOD = 30

Timestamp = Union[int, float, datetime.datetime]


class TOTP(OTP):
    """
    Handler for time-based OTP counters (RFC 6238).

    The HOTP counter is derived from the time: ``(t - initial_timestamp) // period``.
    """

    protocol = "totp"

    def __init__(
        self,
        algorithm: OTPAlgorithm,
        digits: int,
        period: int,
        key: OTPKey,
        initial_timestamp: int = 0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        :param algorithm: hash function used in the HMAC
        :param digits: number of integers in the OTP
        :param period: length of a time step in seconds
        :param key: the shared secret
        :param initial_timestamp: Unix time at which counting starts (T0)
        :param clock: returns the current Unix time; swap it out in tests
        """
        if not isinstance(period, int) or isinstance(period, bool) or period <= 0:
            raise ValueError("period must be a positive integer")
        if initial_timestamp < 0:
            raise ValueError("initial_timestamp must not be negative")
        self._period = period
        self._initial_timestamp = initial_timestamp
        self._clock = clock
        super().__init__(algorithm=algorithm, digits=digits, key=key)

    @property
    def period(self) -> int:
        return self._period

    @property
    def initial_timestamp(self) -> int:
        return self._initial_timestamp

    def current_time(self) -> int:
        """Current Unix time in whole seconds, as seen by this generator."""
        return int(self._clock())

    def counter_for(self, timestamp: Timestamp) -> int:
        """
        Maps a point in time to its HOTP counter.

        :param timestamp: Unix time in seconds or a datetime. Naive datetimes
            are read as local time.
        """
        if isinstance(timestamp, datetime.datetime):
            if timestamp.tzinfo:
                timestamp = calendar.timegm(timestamp.utctimetuple())
            else:
                timestamp = time.mktime(timestamp.timetuple())
        if timestamp < 0:
            raise ValueError("timestamp must not be negative")
        return int((timestamp - self._initial_timestamp) // self._period)

    def _resolve(self, timestamp: Optional[Timestamp]) -> Timestamp:
        return self.current_time() if timestamp is None else timestamp

    def generate(self, timestamp: Optional[Timestamp] = None) -> str:
        """
        Generates the OTP for a point in time.

        :param timestamp: the time to generate for, defaults to now
        :returns: OTP
        """
        counter = self.counter_for(self._resolve(timestamp))
        return self.int_to_digits(self.generate_for_counter(counter), self.digits)

    def now(self) -> str:
        """Generates the current OTP."""
        return self.generate()

    def generate_window(self, window: int, timestamp: Optional[Timestamp] = None) -> Dict[int, str]:
        """
        Generates the OTPs for the step containing ``timestamp`` and the
        ``window`` steps after it. Earlier steps are not included.

        :returns: dict mapping counter to OTP
        """
        counter = self.counter_for(self._resolve(timestamp))
        return {
            c: self.int_to_digits(code, self.digits) for c, code in self.generate_for_window(counter, window).items()
        }

    def validate(self, code: str, timestamp: Optional[Timestamp] = None) -> bool:
        """
        Verifies the OTP against the step containing ``timestamp`` only.

        :param code: the OTP to check
        :param timestamp: the time to check against, defaults to now
        :raises InvalidCodeFormatError: if ``code`` is not a decimal number
        """
        counter = self.counter_for(self._resolve(timestamp))
        return self.validate_with_counter(counter, self.digits_to_int(code))

    def validate_window(self, code: str, window: int, timestamp: Optional[Timestamp] = None) -> Optional[int]:
        """
        Verifies the OTP against the step containing ``timestamp`` and up to
        ``window`` steps after it. Codes from earlier steps are not accepted.

        :returns: the number of steps ahead the match was found, or None
        """
        counter = self.counter_for(self._resolve(timestamp))
        return self.validate_with_window(counter, window, self.digits_to_int(code))

    def count_down(self) -> int:
        """Seconds left before the current OTP changes, between 1 and ``period``."""
        return self._period - (self.current_time() % self._period)

    def to_uri(
        self,
        account: str,
        issuer: Optional[str] = None,
        params: Optional[Mapping[str, str]] = None,
    ) -> str:
        """
        Returns the provisioning URI for the OTP.

        ``digits``, ``period`` and ``algorithm`` are always written from this
        configuration and override same-named entries of ``params``.

        See also:
            https://github.com/google/google-authenticator/wiki/Key-Uri-Format

        :param account: name of the user account
        :param issuer: the name of the OTP issuer; this will be the
            organization title of the OTP entry in Authenticator
        :param params: extra query string parameters, e.g. ``image``
        :returns: provisioning URI
        """
        url_args = dict(params or {})
        url_args.update(
            digits=str(self.digits),
            period=str(self.period),
            algorithm=self.algorithm.uri_name,
        )
        return utils.encode_uri(self.protocol, account, self.key, issuer=issuer, params=url_args)

    @classmethod
    def from_uri(cls, uri: str, strict: bool = True, clock: Callable[[], float] = time.time) -> "TOTP":
        """
        Builds a TOTP from an otpauth URI.

        Missing or unreadable ``algorithm``, ``digits`` and ``period`` fall
        back to SHA1, 6 and 30.

        :raises InvalidURIError: if the URI has the wrong scheme, no usable secret,
            or out of range digits or period
        """
        decoded = utils.decode_uri(uri, strict=strict)
        if decoded is None:
            raise InvalidURIError("Illegal URI given.")
        try:
            return cls(
                algorithm=OTPAlgorithm.find(decoded.params.get("algorithm")) or OTPAlgorithm.SHA1,
                digits=utils.int_param(decoded.params, "digits", DEFAULT_DIGITS),
                period=utils.int_param(decoded.params, "period", DEFAULT_PERIOD),
                key=decoded.key,
                clock=clock,
            )
        except ValueError as e:
            raise InvalidURIError("Illegal URI given: {}".format(e)) from e

    def _fields(self) -> tuple:
        return super()._fields() + (self._period, self._initial_timestamp)

    def __repr__(self) -> str:
        return "TOTP({}, {}, {}, {})".format(self.algorithm.uri_name, self.digits, self.period, self.initial_timestamp)
