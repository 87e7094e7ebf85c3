"""
Storage module for CloudMusic.

Provides SigV4 request signing and a minimal S3-compatible object store
client for uploading and deleting media assets.
"""

from .signer import (
    SignableRequest,
    SigningResult,
    build_canonical_request,
    canonicalize_headers,
    derive_signing_key,
    format_amz_date,
    sign,
    sign_request,
)

from .client import ObjectStore

__all__ = [
    'SignableRequest',
    'SigningResult',
    'build_canonical_request',
    'canonicalize_headers',
    'derive_signing_key',
    'format_amz_date',
    'sign',
    'sign_request',
    'ObjectStore',
]
