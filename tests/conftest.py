import pytest

from otplib import OTPKey

# RFC 4226 Appendix D / RFC 6238 Appendix B seeds
RFC_SEED_SHA1 = b"12345678901234567890"
RFC_SEED_SHA256 = b"12345678901234567890123456789012"
RFC_SEED_SHA512 = b"1234567890123456789012345678901234567890123456789012345678901234"


@pytest.fixture
def rfc_key():
    return OTPKey(RFC_SEED_SHA1)


class FakeClock(object):
    def __init__(self, now=0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()
