class OTPError(ValueError):
    """
    Base class for the errors raised by otplib.

    Derives from ValueError, which is what the rest of the package raises for
    bad arguments, so a single ``except ValueError`` still catches everything.
    """


class KeyFormatError(OTPError):
    """The key material handed to OTPKey is not raw bytes."""


class KeyLengthError(OTPError):
    """The key is shorter than the strict (128 bit) or lenient (80 bit) minimum."""


class DecodeError(OTPError):
    """Encoded key text is not valid hex, base64 or base32."""


class InvalidCodeFormatError(OTPError):
    """An OTP code string is not a non-negative base 10 integer."""


class InvalidURIError(OTPError):
    """The otpauth URI could not be decoded (wrong scheme or missing secret)."""
