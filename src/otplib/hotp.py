from typing import Dict, Mapping, Optional

from . import utils
from .algorithm import OTPAlgorithm
from .exceptions import InvalidURIError
from .key import OTPKey
from .otp import DEFAULT_DIGITS, OTP


class HOTP(OTP):
    """
    Handler for HMAC-based OTP counters (RFC 4226).

    Stateless: the caller stores the counter and moves it forward after a
    successful validation.
    """

    protocol = "hotp"

    def __init__(self, algorithm: OTPAlgorithm, digits: int, key: OTPKey) -> None:
        """
        :param algorithm: hash function used in the HMAC
        :param digits: number of integers in the OTP. Some apps expect this to be 6 digits, others support more.
        :param key: the shared secret
        """
        super().__init__(algorithm=algorithm, digits=digits, key=key)

    def generate(self, counter: int) -> str:
        """
        Generates the OTP for the given counter.

        :param counter: the OTP HMAC counter
        :returns: OTP
        """
        return self.int_to_digits(self.generate_for_counter(counter), self.digits)

    # hotp = HOTP(OTPAlgorithm.SHA1, 6, OTPKey(b"12345678901234567890"))
    # hotp.generate(0) -> "755224"
    # hotp.generate(1) -> "287082"
    # hotp.generate_window(0, 2) -> {0: "755224", 1: "287082", 2: "359152"}

    def generate_window(self, counter: int, look_ahead_window: int) -> Dict[int, str]:
        """
        Generates the OTPs for ``counter`` and the ``look_ahead_window``
        counters after it.

        :returns: dict mapping counter to OTP
        """
        return {
            c: self.int_to_digits(code, self.digits)
            for c, code in self.generate_for_window(counter, look_ahead_window).items()
        }

    def validate(self, counter: int, code: str) -> bool:
        """
        Verifies the OTP passed in against the OTP for exactly ``counter``.

        :param counter: the OTP HMAC counter
        :param code: the OTP to check
        :raises InvalidCodeFormatError: if ``code`` is not a decimal number
        """
        return self.validate_with_counter(counter, self.digits_to_int(code))

    def validate_window(self, counter: int, look_ahead_window: int, code: str) -> Optional[int]:
        """
        Verifies the OTP against ``counter`` and up to ``look_ahead_window``
        counters after it.

        :returns: how far ahead of ``counter`` the match was found, or None.
            A verifier that accepts the code should continue from
            ``counter + gap + 1``.
        """
        return self.validate_with_window(counter, look_ahead_window, self.digits_to_int(code))

    def to_uri(
        self,
        account: str,
        issuer: Optional[str] = None,
        params: Optional[Mapping[str, str]] = None,
        counter: int = 0,
    ) -> str:
        """
        Returns the provisioning URI for the OTP.

        ``digits``, ``algorithm`` and ``counter`` are always written from this
        configuration and override same-named entries of ``params``.

        :param account: name of the user account
        :param issuer: the name of the OTP issuer
        :param params: extra query string parameters
        :param counter: the counter the authenticator should start from
        :returns: provisioning URI
        """
        url_args = dict(params or {})
        url_args.update(
            digits=str(self.digits),
            algorithm=self.algorithm.uri_name,
            counter=str(counter),
        )
        return utils.encode_uri(self.protocol, account, self.key, issuer=issuer, params=url_args)

    @classmethod
    def from_uri(cls, uri: str, strict: bool = True) -> "HOTP":
        """
        Builds an HOTP from an otpauth URI.

        Missing or unreadable ``algorithm`` and ``digits`` fall back to SHA1
        and 6. The ``counter`` parameter is left to the caller, see
        :func:`otplib.utils.decode_uri`.

        :raises InvalidURIError: if the URI has the wrong scheme, no usable secret,
            or out of range digits
        """
        decoded = utils.decode_uri(uri, strict=strict)
        if decoded is None:
            raise InvalidURIError("Illegal URI given.")
        try:
            return cls(
                algorithm=OTPAlgorithm.find(decoded.params.get("algorithm")) or OTPAlgorithm.SHA1,
                digits=utils.int_param(decoded.params, "digits", DEFAULT_DIGITS),
                key=decoded.key,
            )
        except ValueError as e:
            raise InvalidURIError("Illegal URI given: {}".format(e)) from e

    def __repr__(self) -> str:
        return "HOTP({}, {})".format(self.algorithm.uri_name, self.digits)
