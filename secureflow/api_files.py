"""File-oriented convenience wrappers."""

from .engine import secureflow


def encrypt_file(input_path, output_path, password: str | bytes):
    return secureflow.encrypt_file(input_path, output_path, password)


def decrypt_file(input_path, output_path, password: str | bytes):
    return secureflow.decrypt_file(input_path, output_path, password)


def file_exists(path) -> bool:
    return secureflow.file_exists(path)


def ensure_dir(path):
    return secureflow.ensure_dir(path)


def copy_file(src, dst):
    return secureflow.copy_file(src, dst)


def get_file_info(path):
    return secureflow.get_file_info(path)


__all__ = [
    "copy_file",
    "decrypt_file",
    "encrypt_file",
    "ensure_dir",
    "file_exists",
    "get_file_info",
]
