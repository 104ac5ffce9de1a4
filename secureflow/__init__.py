"""
SECUREFLOW - OpenSSL-compatible secret file encryption

Encrypt credentials, keystores and certificates before committing them, and
restore them locally or in CI/CD. Containers use the ``openssl enc`` layout:
``"Salted__" || salt || AES-256-CBC ciphertext`` with PBKDF2-HMAC-SHA256
(10,000 iterations) key derivation, so either tool can read the other's files.
"""

from .main import *
from .api_bytes import decrypt, derive_key_and_iv, encrypt, pkcs7_pad, pkcs7_unpad
from .api_files import copy_file, decrypt_file, encrypt_file, ensure_dir, file_exists, get_file_info
from .config import Config, ConfigError, FileMapping, template_config
from .engine import FileInfo, FormatError, PaddingError, RandomSourceError, SecureFlowError
from .version import __version__


def encrypt_text(text: str, password: str | bytes) -> bytes:
    """
    Encrypt a UTF-8 string into a ``Salted__`` container.

    Args:
        text: Plain text to encrypt
        password: Password (``str`` is UTF-8 encoded)

    Returns:
        Container bytes, readable by
        ``openssl enc -d -aes-256-cbc -pbkdf2 -iter 10000 -md sha256``
    """
    return secureflow.encrypt(text.encode("utf-8"), password)


def decrypt_text(container: bytes, password: str | bytes) -> str:
    """
    Decrypt a container produced by :func:`encrypt_text`.

    Raises:
        FormatError: container is malformed
        PaddingError: padding check failed, almost always a wrong password
    """
    return secureflow.decrypt(container, password).decode("utf-8")


__all__ = [
    "Config",
    "ConfigError",
    "FileInfo",
    "FileMapping",
    "FormatError",
    "PaddingError",
    "RandomSourceError",
    "SecureFlowError",
    "__version__",
    "cli",
    "copy_file",
    "decrypt",
    "decrypt_file",
    "decrypt_text",
    "derive_key_and_iv",
    "encrypt",
    "encrypt_file",
    "encrypt_text",
    "ensure_dir",
    "file_exists",
    "get_file_info",
    "main",
    "pkcs7_pad",
    "pkcs7_unpad",
    "secureflow",
    "template_config",
]
