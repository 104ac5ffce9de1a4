"""In-memory codec convenience wrappers."""

from .engine import secureflow


def encrypt(plaintext: bytes, password: str | bytes) -> bytes:
    return secureflow.encrypt(plaintext, password)


def decrypt(container: bytes, password: str | bytes) -> bytes:
    return secureflow.decrypt(container, password)


def derive_key_and_iv(password: str | bytes, salt: bytes) -> tuple[bytes, bytes]:
    return secureflow.derive_key_and_iv(password, salt)


def pkcs7_pad(data: bytes, block_size: int = secureflow.BLOCK_SIZE) -> bytes:
    return secureflow.pkcs7_pad(data, block_size)


def pkcs7_unpad(data: bytes) -> bytes:
    return secureflow.pkcs7_unpad(data)


__all__ = [
    "decrypt",
    "derive_key_and_iv",
    "encrypt",
    "pkcs7_pad",
    "pkcs7_unpad",
]
