# SECUREFLOW ENCRYPTION ENGINE ->

from dataclasses import dataclass
from datetime import datetime


class SecureFlowError(Exception):
    """Base class for every error raised by secureflow."""


class FormatError(SecureFlowError, ValueError):
    """The input is not a well-formed ``Salted__`` container."""


class PaddingError(SecureFlowError, ValueError):
    """PKCS#7 padding did not validate after decryption (usually a wrong password)."""


class RandomSourceError(SecureFlowError, RuntimeError):
    """The operating system entropy source failed while generating a salt."""


@dataclass(frozen=True)
class FileInfo:
    path: str
    size: int
    lines: int
    last_modified: datetime


class secureflow:
    import os
    import pathlib
    import shutil
    import tempfile
    import typing
    from cryptography.hazmat.primitives import hashes
    from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
    from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

    ENGINE_VERSION = "1.0.0"

    # Container layout and KDF parameters shared with
    # `openssl enc -aes-256-cbc -pbkdf2 -iter 10000 -md sha256`.
    SALTED_PREFIX = b"Salted__"
    SALT_LEN = 8
    HEADER_LEN = len(SALTED_PREFIX) + SALT_LEN
    KEY_LEN = 32  # AES-256
    IV_LEN = 16
    BLOCK_SIZE = 16
    PBKDF2_HASH = hashes.SHA256
    PBKDF2_ITERATIONS = 10_000

    OUTPUT_FILE_MODE = 0o644
    DIR_MODE = 0o755
    LINE_COUNT_CHUNK = 1 << 16

    # ------------------------------------------------------------------
    # Key material
    # ------------------------------------------------------------------

    @staticmethod
    def _coerce_password_bytes(
        password: "secureflow.typing.Union[str, bytes, bytearray, memoryview]"
    ) -> bytes:
        if isinstance(password, str):
            return password.encode("utf-8")
        if isinstance(password, (bytes, bytearray, memoryview)):
            return bytes(password)
        raise TypeError(f"Unsupported password type: {type(password)!r}")

    @staticmethod
    def _random_bytes(length: int) -> bytes:
        try:
            data = secureflow.os.urandom(length)
        except (OSError, NotImplementedError) as exc:
            raise RandomSourceError(f"Entropy source failed: {exc}") from exc
        if len(data) != length:
            raise RandomSourceError("Entropy source returned a short read")
        return data

    @staticmethod
    def derive_key_and_iv(
        password: "secureflow.typing.Union[str, bytes, bytearray, memoryview]",
        salt: bytes
    ) -> "tuple[bytes, bytes]":
        """
        Stretch ``password`` and ``salt`` into an AES-256 key and a CBC IV.

        One PBKDF2-HMAC-SHA256 call with 10,000 iterations yields 48 bytes:
        the first 32 are the key, the next 16 the IV. This is what OpenSSL
        does for ``enc -pbkdf2``, so the parameters must not change.
        """
        kdf = secureflow.PBKDF2HMAC(
            algorithm=secureflow.PBKDF2_HASH(),
            length=secureflow.KEY_LEN + secureflow.IV_LEN,
            salt=bytes(salt),
            iterations=secureflow.PBKDF2_ITERATIONS
        )
        material = kdf.derive(secureflow._coerce_password_bytes(password))
        return material[:secureflow.KEY_LEN], material[secureflow.KEY_LEN:]

    # ------------------------------------------------------------------
    # PKCS#7
    # ------------------------------------------------------------------

    @staticmethod
    def pkcs7_pad(data: bytes, block_size: int = BLOCK_SIZE) -> bytes:
        # Aligned input still gets a full block so unpadding is unambiguous.
        pad_len = block_size - (len(data) % block_size)
        return bytes(data) + bytes([pad_len]) * pad_len

    @staticmethod
    def pkcs7_unpad(data: bytes) -> bytes:
        length = len(data)
        if length == 0:
            raise PaddingError("Invalid padding: empty data")
        pad_len = data[-1]
        if pad_len == 0 or pad_len > length:
            raise PaddingError("Invalid padding length")
        if data[length - pad_len:] != bytes([pad_len]) * pad_len:
            raise PaddingError("Invalid padding bytes")
        return bytes(data[:length - pad_len])

    # ------------------------------------------------------------------
    # Container codec
    # ------------------------------------------------------------------

    @staticmethod
    def _cbc_cipher(password, salt: bytes):
        key, iv = secureflow.derive_key_and_iv(password, salt)
        cipher = secureflow.Cipher(
            secureflow.algorithms.AES(key),
            secureflow.modes.CBC(iv)
        )
        del key, iv
        return cipher

    @staticmethod
    def encrypt(
        plaintext: bytes,
        password: "secureflow.typing.Union[str, bytes, bytearray, memoryview]"
    ) -> bytes:
        if not isinstance(plaintext, (bytes, bytearray, memoryview)):
            raise TypeError("encrypt expects bytes")
        salt = secureflow._random_bytes(secureflow.SALT_LEN)
        encryptor = secureflow._cbc_cipher(password, salt).encryptor()
        padded = secureflow.pkcs7_pad(bytes(plaintext))
        ciphertext = encryptor.update(padded) + encryptor.finalize()
        return secureflow.SALTED_PREFIX + salt + ciphertext

    @staticmethod
    def decrypt(
        container: bytes,
        password: "secureflow.typing.Union[str, bytes, bytearray, memoryview]"
    ) -> bytes:
        if not isinstance(container, (bytes, bytearray, memoryview)):
            raise TypeError("decrypt expects bytes")
        blob = bytes(container)
        if len(blob) < secureflow.HEADER_LEN:
            raise FormatError("Invalid encrypted file format: container too short")
        if blob[:len(secureflow.SALTED_PREFIX)] != secureflow.SALTED_PREFIX:
            raise FormatError("Invalid encrypted file format: missing or invalid magic prefix")
        salt = blob[len(secureflow.SALTED_PREFIX):secureflow.HEADER_LEN]
        ciphertext = blob[secureflow.HEADER_LEN:]
        if len(ciphertext) % secureflow.BLOCK_SIZE != 0:
            raise FormatError("Invalid encrypted file format: ciphertext not block-aligned")
        decryptor = secureflow._cbc_cipher(password, salt).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()
        return secureflow.pkcs7_unpad(padded)

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    @staticmethod
    def _normalize_path(path_like: "secureflow.typing.Union[str, secureflow.pathlib.Path]") -> "secureflow.pathlib.Path":
        if isinstance(path_like, secureflow.pathlib.Path):
            return path_like.expanduser()
        return secureflow.pathlib.Path(str(path_like)).expanduser()

    @staticmethod
    def _write_bytes_atomic(path: "secureflow.pathlib.Path", data: bytes) -> None:
        # Replace the link target, not a symlink sitting at the destination.
        path = secureflow.pathlib.Path(secureflow.os.path.realpath(path))
        fd, tmp_name = secureflow.tempfile.mkstemp(
            prefix=f".{path.name}.",
            suffix=".tmp",
            dir=str(path.parent)
        )
        try:
            with secureflow.os.fdopen(fd, "wb") as handle:
                handle.write(data)
            secureflow.os.chmod(tmp_name, secureflow.OUTPUT_FILE_MODE)
            secureflow.os.replace(tmp_name, path)
        except BaseException:
            try:
                secureflow.os.unlink(tmp_name)
            except OSError:
                pass
            raise

    @staticmethod
    def encrypt_file(
        input_path: "secureflow.typing.Union[str, secureflow.pathlib.Path]",
        output_path: "secureflow.typing.Union[str, secureflow.pathlib.Path]",
        password: "secureflow.typing.Union[str, bytes, bytearray, memoryview]"
    ) -> "secureflow.pathlib.Path":
        source = secureflow._normalize_path(input_path)
        target = secureflow._normalize_path(output_path)
        container = secureflow.encrypt(source.read_bytes(), password)
        secureflow._write_bytes_atomic(target, container)
        return target

    @staticmethod
    def decrypt_file(
        input_path: "secureflow.typing.Union[str, secureflow.pathlib.Path]",
        output_path: "secureflow.typing.Union[str, secureflow.pathlib.Path]",
        password: "secureflow.typing.Union[str, bytes, bytearray, memoryview]"
    ) -> "secureflow.pathlib.Path":
        source = secureflow._normalize_path(input_path)
        target = secureflow._normalize_path(output_path)
        plaintext = secureflow.decrypt(source.read_bytes(), password)
        secureflow._write_bytes_atomic(target, plaintext)
        return target

    @staticmethod
    def file_exists(path) -> bool:
        return secureflow._normalize_path(path).exists()

    @staticmethod
    def ensure_dir(path) -> "secureflow.pathlib.Path":
        directory = secureflow._normalize_path(path)
        directory.mkdir(mode=secureflow.DIR_MODE, parents=True, exist_ok=True)
        return directory

    @staticmethod
    def copy_file(src, dst) -> "secureflow.pathlib.Path":
        target = secureflow._normalize_path(dst)
        secureflow.shutil.copyfile(secureflow._normalize_path(src), target)
        return target

    @staticmethod
    def _count_lines(path: "secureflow.pathlib.Path") -> int:
        lines = 0
        last = b""
        with open(path, "rb") as handle:
            while True:
                chunk = handle.read(secureflow.LINE_COUNT_CHUNK)
                if not chunk:
                    break
                lines += chunk.count(b"\n")
                last = chunk[-1:]
        # A trailing line without a newline still counts.
        if last and last != b"\n":
            lines += 1
        return lines

    @staticmethod
    def get_file_info(path) -> FileInfo:
        target = secureflow._normalize_path(path)
        stat = target.stat()
        if not target.is_file():
            raise IsADirectoryError(f"Not a regular file: {target}")
        return FileInfo(
            path=str(path),
            size=stat.st_size,
            lines=secureflow._count_lines(target),
            last_modified=datetime.fromtimestamp(stat.st_mtime)
        )

    @staticmethod
    def _human_readable_size(num_bytes: int) -> str:
        units = ["B", "KiB", "MiB", "GiB", "TiB"]
        value = float(num_bytes)
        for unit in units[:-1]:
            if value < 1024.0:
                return f"{value:.2f} {unit}"
            value /= 1024.0
        return f"{value:.2f} {units[-1]}"


__all__ = [
    "FileInfo",
    "FormatError",
    "PaddingError",
    "RandomSourceError",
    "SecureFlowError",
    "secureflow",
]
