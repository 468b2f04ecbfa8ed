"""
Detached signature verification for gateway callbacks.

The gateway signs the exact request body with RSA (PKCS#1 v1.5) over a
SHA-512 digest and sends the signature base64-encoded in a header.
"""
from __future__ import annotations

import base64
import binascii
from typing import Union

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from ..logging_config import get_logger

logger = get_logger(__name__)

PublicKeyLike = Union[rsa.RSAPublicKey, bytes, str]


def load_public_key(pem: Union[bytes, str]) -> rsa.RSAPublicKey:
    """
    Parse a PEM encoded RSA public key.

    Raises:
        ValueError: if the PEM is malformed or not an RSA key
    """
    if isinstance(pem, str):
        pem = pem.encode("utf-8")
    try:
        key = serialization.load_pem_public_key(pem)
    except UnsupportedAlgorithm as e:
        raise ValueError(f"Unsupported public key: {e}") from e
    if not isinstance(key, rsa.RSAPublicKey):
        raise ValueError(f"Expected an RSA public key, got {type(key).__name__}")
    return key


def verify_signature(payload: bytes, signature_b64: str, public_key: PublicKeyLike) -> bool:
    """
    Check ``signature_b64`` against ``payload`` with the gateway key.

    Returns True only on a cryptographic match. Bad base64, a malformed key
    or any error from the crypto backend yields False.
    """
    if not signature_b64:
        return False
    try:
        signature = base64.b64decode(signature_b64, validate=True)
        if not isinstance(public_key, rsa.RSAPublicKey):
            public_key = load_public_key(public_key)
        public_key.verify(signature, payload, padding.PKCS1v15(), hashes.SHA512())
        return True
    except InvalidSignature:
        return False
    except (binascii.Error, ValueError, TypeError) as e:
        logger.warning("signature_check_error", error=str(e), error_type=type(e).__name__)
        return False
    except Exception as e:  # backend failure counts as a mismatch
        logger.error("signature_backend_error", exc_info=e)
        return False
