"""
AWS Signature Version 4 request signing for CloudMusic.

Computes the Authorization header for single-object PUT and DELETE requests
against an S3-compatible endpoint, using the UNSIGNED-PAYLOAD convention so
the request body never has to be hashed up front.
"""

import hashlib
import hmac
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, Optional, Union
from urllib.parse import quote, unquote, urlsplit

from ..exceptions import SigningError
from ..models import Credential

logger = logging.getLogger(__name__)

ALGORITHM = "AWS4-HMAC-SHA256"
UNSIGNED_PAYLOAD = "UNSIGNED-PAYLOAD"
SIGNABLE_METHODS = ("PUT", "DELETE")

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_amz_date(now: datetime) -> str:
    """
    Format an instant as YYYYMMDDTHHMMSSZ (UTC, no sub-second fraction).

    Naive datetimes are taken to already be in UTC.

    Example:
        >>> format_amz_date(datetime(2024, 3, 9, 7, 5, 1, 250000, tzinfo=timezone.utc))
        '20240309T070501Z'
    """
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.strftime("%Y%m%dT%H%M%SZ")


def _hmac(key: Union[str, bytes], message: str) -> bytes:
    if isinstance(key, str):
        key = key.encode("utf-8")
    return hmac.new(key, message.encode("utf-8"), hashlib.sha256).digest()


def _sha256_hex(data: str) -> str:
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def derive_signing_key(secret_key: str, date_stamp: str, region: str, service: str = "s3") -> bytes:
    """
    Derive the SigV4 signing key through four chained HMAC-SHA256 steps.

    Each step keys the next one: AWS4+secret -> date -> region -> service -> aws4_request.
    """
    k_date = _hmac(f"AWS4{secret_key}", date_stamp)
    k_region = _hmac(k_date, region)
    k_service = _hmac(k_region, service)
    return _hmac(k_service, "aws4_request")


def canonical_uri(url: str) -> str:
    """URI-encode the path component of a URL exactly once."""
    path = urlsplit(url).path or "/"
    return quote(unquote(path), safe="/-_.~")


def canonicalize_headers(headers: Dict[str, str]):
    """
    Build the canonical header block and the signed header list.

    Names are lower-cased, values trimmed, and entries sorted by name, so the
    result does not depend on the insertion order of ``headers``.

    Returns:
        Tuple of (canonical_headers, signed_headers)
    """
    normalized = {name.lower(): str(value).strip() for name, value in headers.items()}
    names = sorted(normalized)
    canonical_headers = "".join(f"{name}:{normalized[name]}\n" for name in names)
    signed_headers = ";".join(names)
    return canonical_headers, signed_headers


@dataclass
class SignableRequest:
    """
    A single object-level request ready to be signed.

    ``headers`` holds lower-cased names and trimmed values. It always carries
    ``x-amz-date`` and ``x-amz-content-sha256``; PUT requests also carry
    ``content-type``. ``host`` is never stored here: it is derived from the
    URL while signing and must not be sent explicitly.
    """
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body_hash: str = UNSIGNED_PAYLOAD

    @classmethod
    def create(
        cls,
        method: str,
        url: str,
        now: datetime,
        content_type: Optional[str] = None,
        extra_headers: Optional[Dict[str, str]] = None,
    ) -> "SignableRequest":
        """
        Build a request whose x-amz-date is derived from ``now``.

        Args:
            method: PUT or DELETE
            url: Fully-qualified object URL
            now: The signing instant (must be the same one passed to sign())
            content_type: MIME type for PUT requests
            extra_headers: Additional headers to sign and send (gateway headers)
        """
        method = method.upper()
        if method not in SIGNABLE_METHODS:
            raise ValueError(f"Unsupported method for signing: {method}")

        headers: Dict[str, str] = {}
        for name, value in (extra_headers or {}).items():
            headers[name.lower()] = str(value).strip()
        headers["x-amz-date"] = format_amz_date(now)
        headers["x-amz-content-sha256"] = UNSIGNED_PAYLOAD
        if method == "PUT":
            headers["content-type"] = (content_type or "application/octet-stream").strip()

        return cls(method=method, url=url, headers=headers)

    @property
    def host(self) -> str:
        return urlsplit(self.url).netloc


@dataclass(frozen=True)
class SigningResult:
    """Output of sign(): the Authorization value plus the pieces it was built from."""
    authorization: str
    amz_date: str
    signed_headers: str
    signature: str
    credential_scope: str

    def request_headers(self, request: SignableRequest) -> Dict[str, str]:
        """Headers to actually send: everything signed except host, plus Authorization."""
        headers = {name: value for name, value in request.headers.items() if name != "host"}
        headers["Authorization"] = self.authorization
        return headers


def build_canonical_request(request: SignableRequest) -> str:
    """
    Build the SigV4 canonical request string.

    The query-string line is always empty since only object-level requests
    without query parameters are signed.
    """
    headers = dict(request.headers)
    headers["host"] = request.host
    canonical_headers, signed_headers = canonicalize_headers(headers)
    return "\n".join([
        request.method.upper(),
        canonical_uri(request.url),
        "",
        canonical_headers,
        signed_headers,
        request.body_hash,
    ])


def sign(request: SignableRequest, credential: Credential, now: datetime) -> SigningResult:
    """
    Compute the SigV4 Authorization header for ``request``.

    Pure function of its inputs: the same (request, credential, now) always
    yields the same result.

    Args:
        request: Request to sign
        credential: Access key pair and region
        now: Signing instant; the x-amz-date header must have been derived from it

    Returns:
        SigningResult with the Authorization header value and amz date

    Raises:
        SigningError: If ``now`` is missing or disagrees with the request's x-amz-date
    """
    if now is None:
        raise SigningError("No signing instant available")

    amz_date = format_amz_date(now)
    date_stamp = amz_date[:8]

    header_date = request.headers.get("x-amz-date")
    if header_date is not None and header_date != amz_date:
        raise SigningError(
            f"x-amz-date {header_date} does not match signing instant {amz_date}"
        )

    canonical_request = build_canonical_request(request)
    _, signed_headers = canonicalize_headers({**request.headers, "host": request.host})

    credential_scope = f"{date_stamp}/{credential.region}/{credential.service}/aws4_request"
    string_to_sign = "\n".join([
        ALGORITHM,
        amz_date,
        credential_scope,
        _sha256_hex(canonical_request),
    ])

    signing_key = derive_signing_key(credential.secret_key, date_stamp, credential.region, credential.service)
    signature = hmac.new(signing_key, string_to_sign.encode("utf-8"), hashlib.sha256).hexdigest()

    authorization = (
        f"{ALGORITHM} Credential={credential.access_key_id}/{credential_scope}, "
        f"SignedHeaders={signed_headers}, Signature={signature}"
    )

    logger.debug(f"Signed {request.method} {request.url} with scope {credential_scope} (headers: {signed_headers})")

    return SigningResult(
        authorization=authorization,
        amz_date=amz_date,
        signed_headers=signed_headers,
        signature=signature,
        credential_scope=credential_scope,
    )


def sign_request(
    method: str,
    url: str,
    credential: Credential,
    content_type: Optional[str] = None,
    extra_headers: Optional[Dict[str, str]] = None,
    unsigned_headers: Optional[Dict[str, str]] = None,
    clock: Clock = utc_now,
) -> Dict[str, str]:
    """
    Capture the current instant once, sign, and return the headers to send.

    Args:
        method: PUT or DELETE
        url: Fully-qualified object URL
        credential: Access key pair and region
        content_type: MIME type for PUT requests
        extra_headers: Headers included in the signature
        unsigned_headers: Headers sent alongside but left out of the signature
        clock: Callable returning the current UTC datetime

    Returns:
        Dictionary of HTTP headers including Authorization (host excluded)

    Raises:
        SigningError: If the clock cannot provide an instant
    """
    try:
        now = clock()
    except Exception as e:
        raise SigningError(f"Clock unavailable: {str(e)}")
    if now is None:
        raise SigningError("Clock returned no instant")

    request = SignableRequest.create(method, url, now, content_type=content_type, extra_headers=extra_headers)
    result = sign(request, credential, now)

    headers = result.request_headers(request)
    for name, value in (unsigned_headers or {}).items():
        headers.setdefault(name, value)
    return headers
