from typing import Union

from .algorithm import OTPAlgorithm as OTPAlgorithm
from .exceptions import DecodeError as DecodeError
from .exceptions import InvalidCodeFormatError as InvalidCodeFormatError
from .exceptions import InvalidURIError as InvalidURIError
from .exceptions import KeyFormatError as KeyFormatError
from .exceptions import KeyLengthError as KeyLengthError
from .exceptions import OTPError as OTPError
from .hotp import HOTP as HOTP
from .key import OTPKey as OTPKey
from .otp import OTP as OTP
from .totp import TOTP as TOTP
from .utils import Decoded as Decoded
from .utils import decode_uri as decode_uri
from .utils import encode_uri as encode_uri

# The URL looks like this:
# otpauth://totp/FooCorp:alice@example.com?algorithm=SHA256&digits=6&issuer=FooCorp&period=30&secret=JBSWY3DPEHPK3PXP
# ─────────┬───┬──────┬─────────────────┬─────────────────────────────────────────
#          │   │      │                 └── Query parameters (secret, issuer, etc.)
#          │   │      └── Account name (alice@example.com)
#          │   └── Issuer in path (FooCorp)
#          └── OTP type (totp or hotp)


def parse_uri(uri: str, strict: bool = True) -> Union[HOTP, TOTP]:
    """
    Parses the provisioning URI for the OTP; works for either TOTP or HOTP.

    See also:
        https://github.com/google/google-authenticator/wiki/Key-Uri-Format

    :param uri: the hotp/totp URI to parse
    :param strict: key length validation mode for the secret
    :returns: HOTP or TOTP object
    :raises InvalidURIError: if the URI does not decode, names another OTP type
        or carries out of range digits or period
    """
    decoded = decode_uri(uri, strict=strict)
    if decoded is None:
        raise InvalidURIError("Not an otpauth URI with a valid secret")
    if decoded.protocol == TOTP.protocol:
        return TOTP.from_uri(uri, strict=strict)
    elif decoded.protocol == HOTP.protocol:
        return HOTP.from_uri(uri, strict=strict)
    raise InvalidURIError("Not a supported OTP type: {!r}".format(decoded.protocol))
