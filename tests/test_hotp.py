import copy
import pickle

import pytest

from otplib import HOTP, OTP, InvalidCodeFormatError, InvalidURIError, OTPAlgorithm, OTPKey, decode_uri

RFC4226_CODES = ["755224", "287082", "359152", "969429", "338314", "254676", "287922", "162583", "399871", "520489"]


@pytest.fixture
def hotp(rfc_key):
    return HOTP(OTPAlgorithm.SHA1, 6, rfc_key)


def test_rfc4226_vectors(hotp):
    assert [hotp.generate(counter) for counter in range(10)] == RFC4226_CODES


def test_rfc4226_truncation_example():
    # RFC 4226 section 5.4
    tag = bytes.fromhex("1f8698690e02ca16618550ef7f19da8e945b555a")
    assert OTP.truncate(tag, 9) == 357872921
    assert OTP.truncate(tag, 6) == 872921


def test_truncation_of_appendix_d_hmac():
    tag = bytes.fromhex("cc93cf18508d94934c64b65d8ba7667fb7cde4b0")
    assert OTP.truncate(tag, 9) == 284755224
    assert OTP.truncate(tag, 6) == 755224


def test_short_tag_offsets_wrap_around():
    # 16 byte tag, offsets 13-15 read from 0-2
    head = bytes.fromhex("0a0b0c0d0e")
    assert OTP.truncate(head + bytes(10) + b"\x0d", 9) == 0x0A0B0C0D % 10**9
    assert OTP.truncate(head + bytes(10) + b"\x0e", 9) == 0x0B0C0D0E % 10**9
    assert OTP.truncate(head + bytes(10) + b"\x0f", 9) == 0x0C0D0E00 % 10**9
    # offsets with four bytes behind them are left alone
    assert OTP.truncate(bytes(8) + b"\xff\x01\x02\x03" + bytes(3) + b"\x08", 9) == 0x7F010203 % 10**9


def test_tag_shorter_than_four_bytes():
    with pytest.raises(ValueError):
        OTP.truncate(b"\x00\x00\x01", 6)


class TestMD5:
    @pytest.fixture
    def md5_hotp(self, rfc_key):
        return HOTP(OTPAlgorithm.MD5, 6, rfc_key)

    def test_every_counter_generates(self, md5_hotp):
        for counter in range(200):
            code = md5_hotp.generate(counter)
            assert len(code) == 6
            assert code.isdigit()

    def test_window_validation(self, md5_hotp):
        for counter in range(40):
            assert md5_hotp.validate_window(counter, 10, md5_hotp.generate(counter)) == 0
            assert md5_hotp.validate(counter, md5_hotp.generate(counter))
        assert md5_hotp.validate_window(0, 10, md5_hotp.generate(7)) in range(0, 8)


def test_hmac_uses_algorithm(rfc_key):
    assert len(HOTP(OTPAlgorithm.SHA1, 6, rfc_key).hmac(b"\0" * 8)) == 20
    assert len(HOTP(OTPAlgorithm.SHA512, 6, rfc_key).hmac(b"\0" * 8)) == 64
    assert HOTP(OTPAlgorithm.SHA1, 6, rfc_key).hmac(b"\0" * 8) == bytes.fromhex(
        "cc93cf18508d94934c64b65d8ba7667fb7cde4b0"
    )


@pytest.mark.parametrize("digits", range(1, 10))
def test_code_width(rfc_key, digits):
    hotp = HOTP(OTPAlgorithm.SHA256, digits, rfc_key)
    for counter in range(50):
        code = hotp.generate(counter)
        assert len(code) == digits
        assert code.isdigit()
        assert int(code) < 10**digits


@pytest.mark.parametrize("digits", [0, 10, -1, "6", True])
def test_rejects_bad_digits(rfc_key, digits):
    with pytest.raises(ValueError):
        HOTP(OTPAlgorithm.SHA1, digits, rfc_key)


def test_rejects_negative_counter(hotp):
    with pytest.raises(ValueError):
        hotp.generate(-1)


def test_int_to_digits_keeps_leading_zeros():
    assert OTP.int_to_digits(7531, 6) == "007531"
    assert OTP.int_to_digits(0, 8) == "00000000"
    assert OTP.int_to_digits(123456, 6) == "123456"


def test_int_to_bytestring():
    assert OTP.int_to_bytestring(0) == b"\0" * 8
    assert OTP.int_to_bytestring(1) == b"\0" * 7 + b"\x01"
    assert OTP.int_to_bytestring(12345) == b"\0" * 6 + b"\x30\x39"


def test_digits_to_int():
    assert OTP.digits_to_int("007531") == 7531
    assert OTP.digits_to_int("0") == 0
    for bad in ["abc", "", "12a", "-5", "+5", "1.5", None, 755224, " 755224\n", "755_224", "٧٥٥٢٢٤", "７５５２２４"]:
        with pytest.raises(InvalidCodeFormatError):
            OTP.digits_to_int(bad)


def test_validate_rejects_loosely_formatted_codes(hotp):
    with pytest.raises(InvalidCodeFormatError):
        hotp.validate(0, " 755_224 ")
    with pytest.raises(InvalidCodeFormatError):
        hotp.validate_window(0, 3, "755224\n")


def test_counter_must_fit_in_eight_bytes(hotp):
    assert hotp.generate(2**64 - 1).isdigit()
    with pytest.raises(ValueError):
        hotp.generate(2**64)
    other = OTP.int_to_digits((int(hotp.generate(2**64 - 1)) + 1) % 10**6, 6)
    with pytest.raises(ValueError):
        hotp.validate_window(2**64 - 1, 1, other)
    with pytest.raises(ValueError):
        OTP.int_to_bytestring(2**64)


class TestGenerateWindow:
    def test_window(self, hotp):
        assert hotp.generate_window(2, 3) == {2: "359152", 3: "969429", 4: "338314", 5: "254676"}
        assert list(hotp.generate_window(2, 3)) == [2, 3, 4, 5]

    def test_zero_window_is_single_entry(self, hotp):
        assert hotp.generate_window(7, 0) == {7: hotp.generate(7)}

    def test_integer_form(self, hotp):
        assert hotp.generate_for_window(0, 1) == {0: 755224, 1: 287082}

    def test_negative_window(self, hotp):
        with pytest.raises(ValueError):
            hotp.generate_window(0, -1)


class TestValidate:
    def test_exact_counter_only(self, hotp):
        assert hotp.validate(3, "969429")
        assert not hotp.validate(2, "969429")
        assert not hotp.validate(4, "969429")

    def test_leading_zeros_are_optional(self, rfc_key):
        hotp = HOTP(OTPAlgorithm.SHA1, 6, rfc_key)
        for counter in range(200):
            code = hotp.generate(counter)
            if code.startswith("0"):
                assert hotp.validate(counter, code.lstrip("0") or "0")
                break
        else:
            pytest.fail("no code with a leading zero in the first 200 counters")

    def test_bad_code_format(self, hotp):
        with pytest.raises(InvalidCodeFormatError):
            hotp.validate(0, "75522a")
        with pytest.raises(InvalidCodeFormatError):
            hotp.validate_window(0, 3, "")

    def test_window_returns_gap(self, hotp):
        assert hotp.validate_window(0, 5, "969429") == 3
        assert hotp.validate_window(3, 5, "969429") == 0
        assert hotp.validate_window(0, 3, "969429") == 3
        assert hotp.validate_window(0, 2, "969429") is None

    def test_window_looks_forward_only(self, hotp):
        assert hotp.validate_window(4, 5, "969429") is None

    def test_window_agrees_with_exact_validation(self, hotp):
        for counter in range(10):
            code = RFC4226_CODES[counter]
            assert hotp.validate(counter, code)
            assert hotp.validate_window(counter, 4, code) == 0

    def test_integer_form(self, hotp):
        assert hotp.validate_with_counter(1, 287082)
        assert hotp.validate_with_window(0, 9, 520489) == 9


class TestHOTPURI:
    def test_round_trip(self, hotp):
        uri = hotp.to_uri("alice@example.com", issuer="ACME", counter=5)
        assert uri.startswith("otpauth://hotp/ACME:alice%40example.com?")
        decoded = decode_uri(uri)
        assert decoded.protocol == "hotp"
        assert decoded.params["counter"] == "5"
        assert decoded.params["digits"] == "6"
        assert decoded.params["algorithm"] == "SHA1"
        assert HOTP.from_uri(uri) == hotp

    def test_from_uri_fallbacks(self, rfc_key):
        hotp = HOTP.from_uri("otpauth://hotp/alice?secret={}&algorithm=SHA3".format(rfc_key.to_base32()))
        assert hotp.algorithm is OTPAlgorithm.SHA1
        assert hotp.digits == 6
        assert hotp.key == rfc_key

    def test_from_uri_reads_parameters(self, rfc_key):
        uri = "otpauth://hotp/alice?secret={}&algorithm=SHA512&digits=8".format(rfc_key.to_base32())
        hotp = HOTP.from_uri(uri)
        assert hotp.algorithm is OTPAlgorithm.SHA512
        assert hotp.digits == 8

    def test_from_invalid_uri(self):
        with pytest.raises(InvalidURIError):
            HOTP.from_uri("otpauth://hotp/alice?digits=6")

    @pytest.mark.parametrize("digits", ["0", "10"])
    def test_from_uri_with_out_of_range_digits(self, rfc_key, digits):
        with pytest.raises(InvalidURIError):
            HOTP.from_uri("otpauth://hotp/alice?secret={}&digits={}".format(rfc_key.to_base32(), digits))


def test_copy_and_pickle(hotp):
    assert copy.copy(hotp) == hotp
    assert copy.deepcopy(hotp) == hotp
    assert pickle.loads(pickle.dumps(hotp)) == hotp
    assert pickle.loads(pickle.dumps(hotp)).generate(0) == "755224"


def test_value_semantics(rfc_key):
    a = HOTP(OTPAlgorithm.SHA1, 6, rfc_key)
    b = HOTP(OTPAlgorithm.SHA1, 6, OTPKey(bytes(rfc_key.to_bytes())))
    assert a == b
    assert hash(a) == hash(b)
    assert a != HOTP(OTPAlgorithm.SHA1, 8, rfc_key)
    with pytest.raises(AttributeError):
        a.digits = 8
    assert a.protocol == "hotp"
