import logging
import re
import unicodedata
from dataclasses import dataclass, field
from hmac import compare_digest
from typing import Dict, Mapping, Optional
from urllib.parse import parse_qsl, quote, unquote, urlencode, urlparse

from .key import OTPKey

logger = logging.getLogger(__name__)

SCHEME = "otpauth"


@dataclass(frozen=True)
class Decoded:
    """
    The pieces of an otpauth URI.

    ``params`` holds every query parameter, ``secret`` and ``issuer``
    included. decode_uri builds a new dict for each call and keeps no
    reference to it, so the caller owns it; changing it does not affect the
    other fields.
    """

    protocol: str
    account: str
    key: OTPKey
    issuer: Optional[str] = None
    params: Dict[str, str] = field(default_factory=dict)


def encode_uri(
    protocol: str,
    account: str,
    key: OTPKey,
    issuer: Optional[str] = None,
    params: Optional[Mapping[str, str]] = None,
) -> str:
    """
    Returns the provisioning URI for an OTP configuration.

    This can then be encoded in a QR Code and used to provision an
    authenticator app.

    See also:
        https://github.com/google/google-authenticator/wiki/Key-Uri-Format

    :param protocol: "hotp" or "totp", used as the URI host
    :param account: name of the account
    :param key: the shared secret, written base32 encoded as ``secret``
    :param issuer: the name of the OTP issuer; it prefixes the label and is
        repeated as the ``issuer`` parameter
    :param params: other query string parameters to include in the URI.
        ``secret`` and ``issuer`` always take the values derived from the
        arguments above.
    :returns: provisioning uri
    """
    # -> "otpauth://totp/GitHub:alice%40gmail.com?issuer=GitHub&secret=..."
    url_args: Dict[str, str] = {}
    for k, v in (params or {}).items():
        if not isinstance(v, str):
            raise ValueError("All otpauth uri parameters must be strings")
        if k == "image":
            image_uri = urlparse(v)
            if image_uri.scheme != "https" or not image_uri.netloc or not image_uri.path:
                raise ValueError("{} is not a valid url".format(image_uri))
        url_args[k] = v

    url_args["secret"] = key.to_base32()
    label = quote(account, safe="")
    if issuer is not None:
        label = quote(issuer, safe="") + ":" + label
        url_args["issuer"] = issuer

    # Sorted so the same configuration always gives the same URI.
    query = urlencode(sorted(url_args.items()), quote_via=quote)
    return "{0}://{1}/{2}?{3}".format(SCHEME, protocol, label, query)


def decode_uri(uri: str, strict: bool = True) -> Optional[Decoded]:
    """
    Parses an otpauth URI.

    Never raises for bad input: anything that is not an ``otpauth`` URI
    carrying a usable base32 ``secret`` gives None.

    :param uri: the hotp/totp URI to parse
    :param strict: key length validation mode for the decoded secret
    :returns: Decoded or None
    """
    if not isinstance(uri, str):
        logger.debug("Rejecting otpauth URI: not a string")
        return None
    try:
        parsed_uri = urlparse(uri)
    except ValueError:
        logger.debug("Rejecting otpauth URI: unparseable")
        return None

    if parsed_uri.scheme.lower() != SCHEME:
        logger.debug("Rejecting otpauth URI: scheme is %r", parsed_uri.scheme)
        return None

    # "a=1&b" -> {"a": "1", "b": ""}; unknown parameters are kept as is
    params = dict(parse_qsl(parsed_uri.query, keep_blank_values=True))
    secret = params.get("secret")
    if not secret:
        logger.debug("Rejecting otpauth URI: no secret")
        return None
    try:
        key = OTPKey.from_base32(secret, strict=strict)
    except ValueError as e:
        logger.debug("Rejecting otpauth URI: %s", e)
        return None

    # encode_uri escapes colons inside issuer and account, so a literal one is
    # the separator. Some tools send the separator itself escaped as %3A;
    # that is only taken as the separator when the prefix is the issuer
    # parameter, otherwise it belongs to the account.
    label = parsed_uri.path[1:]
    if ":" in label:
        label_parts = label.split(":", 1)
    else:
        label_parts = re.split("%3A", label, maxsplit=1, flags=re.IGNORECASE)
        if len(label_parts) == 2 and unquote(label_parts[0]) != params.get("issuer"):
            label_parts = [label]
    if len(label_parts) == 1:
        issuer = None
        account = unquote(label_parts[0])
    else:
        issuer = unquote(label_parts[0])
        account = unquote(label_parts[1])

    return Decoded(
        protocol=parsed_uri.netloc,
        account=account,
        key=key,
        issuer=issuer,
        params=params,
    )


def int_param(params: Mapping[str, str], name: str, default: int) -> int:
    """Reads an integer parameter, falling back to ``default`` when absent or not a number."""
    try:
        return int(params[name])
    except (KeyError, ValueError):
        return default


def strings_equal(s1: str, s2: str) -> bool:
    """
    Timing-attack resistant string comparison.

    Normal comparison using == will short-circuit on the first mismatching
    character. This avoids that by scanning the whole string, though we
    still reveal to a timing attack whether the strings are the same
    length.
    """
    s1 = unicodedata.normalize("NFKC", s1)
    s2 = unicodedata.normalize("NFKC", s2)
    return compare_digest(s1.encode("utf-8"), s2.encode("utf-8"))
