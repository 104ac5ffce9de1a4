"""
Project configuration for secureflow.

A project describes which secrets to protect in a ``secureflow.yaml`` file::

    output_dir: enc_keys
    test_output_dir: test_dec_keys
    files:
      - input: .env.prod
        output: .env.prod.encrypted
        copy_to: .env

``input`` is the plaintext path, ``output`` the container name inside
``output_dir`` and ``copy_to`` an optional second destination for the
decrypted file. Built-in templates cover common project layouts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import yaml

from .engine import SecureFlowError

DEFAULT_CONFIG_FILE = "secureflow.yaml"
DEFAULT_OUTPUT_DIR = "enc_keys"
DEFAULT_TEST_OUTPUT_DIR = "test_dec_keys"


class ConfigError(SecureFlowError, ValueError):
    """Raised when a configuration file cannot be read, parsed or written."""


def _dir_setting(data: Mapping, key: str, default: str) -> str:
    # Absent or blank falls back to the default; any other non-string is an error.
    value = data.get(key)
    if value is None or value == "":
        return default
    if not isinstance(value, str):
        raise ConfigError(f"{key} must be a string")
    return value


@dataclass(frozen=True)
class FileMapping:
    input: str
    output: str
    copy_to: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        data = {"input": self.input, "output": self.output}
        if self.copy_to:
            data["copy_to"] = self.copy_to
        return data

    @classmethod
    def from_dict(cls, data: Any, index: int = 0) -> "FileMapping":
        if not isinstance(data, Mapping):
            raise ConfigError(f"files[{index}] must be a mapping with 'input' and 'output'")
        values = {}
        for key in ("input", "output"):
            value = data.get(key)
            if not isinstance(value, str) or not value:
                raise ConfigError(f"files[{index}].{key} must be a non-empty string")
            values[key] = value
        copy_to = data.get("copy_to")
        if copy_to is not None and not isinstance(copy_to, str):
            raise ConfigError(f"files[{index}].copy_to must be a string")
        return cls(values["input"], values["output"], copy_to or None)


@dataclass(frozen=True)
class Config:
    output_dir: str = DEFAULT_OUTPUT_DIR
    test_output_dir: str = DEFAULT_TEST_OUTPUT_DIR
    files: Tuple[FileMapping, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "output_dir": self.output_dir,
            "test_output_dir": self.test_output_dir,
            "files": [mapping.to_dict() for mapping in self.files],
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Config":
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise ConfigError("Config document must be a mapping")
        output_dir = _dir_setting(data, "output_dir", DEFAULT_OUTPUT_DIR)
        test_output_dir = _dir_setting(data, "test_output_dir", DEFAULT_TEST_OUTPUT_DIR)
        raw_files = data.get("files")
        if raw_files is None:
            raw_files = []
        if not isinstance(raw_files, list):
            raise ConfigError("files must be a list")
        files = tuple(FileMapping.from_dict(item, index) for index, item in enumerate(raw_files))
        return cls(output_dir, test_output_dir, files)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "Config":
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"failed to read config file: {exc}") from exc
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"failed to parse config file: {exc}") from exc
        return cls.from_dict(data)

    def save(self, path: Union[str, Path]) -> Path:
        target = Path(path)
        text = yaml.safe_dump(self.to_dict(), sort_keys=False, default_flow_style=False)
        try:
            target.write_text(text, encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"failed to write config file: {exc}") from exc
        return target


def _template(output_dir: str, test_output_dir: str, *files: Tuple[str, ...]) -> Config:
    return Config(output_dir, test_output_dir, tuple(FileMapping(*entry) for entry in files))


def default_config() -> Config:
    return _template(
        "enc_keys",
        "test_dec_keys",
        (".env.prod", ".env.prod.encrypted", ".env"),
        ("android/app/keystore.jks", "keystore.jks.encrypted"),
        ("android/key.properties", "key.properties.encrypted"),
        ("android/service-key.json", "service-key.json.encrypted"),
    )


def react_native_config() -> Config:
    return _template(
        "enc_keys",
        "test_dec_keys",
        (".env.prod", ".env.prod.encrypted", ".env"),
        (".env.staging", ".env.staging.encrypted"),
        ("android/app/keystore.jks", "keystore.jks.encrypted"),
        ("android/key.properties", "key.properties.encrypted"),
        ("android/service-key.json", "service-key.json.encrypted"),
        ("ios/GoogleService-Info.plist", "GoogleService-Info.plist.encrypted"),
    )


def flutter_config() -> Config:
    return _template(
        "enc_keys",
        "test_dec_keys",
        (".env.prod", ".env.prod.encrypted", ".env"),
        (".env.staging", ".env.staging.encrypted"),
        ("android/app/keystore.jks", "keystore.jks.encrypted"),
        ("android/key.properties", "key.properties.encrypted"),
        ("android/app/google-services.json", "google-services.json.encrypted"),
        ("ios/Runner/GoogleService-Info.plist", "GoogleService-Info.plist.encrypted"),
    )


def web_config() -> Config:
    return _template(
        "enc_keys",
        "test_dec_keys",
        (".env.prod", ".env.prod.encrypted", ".env"),
        (".env.production", ".env.production.encrypted"),
        (".env.staging", ".env.staging.encrypted"),
        ("config/database.yml", "database.yml.encrypted"),
        ("config/secrets.yml", "secrets.yml.encrypted"),
    )


def docker_config() -> Config:
    return _template(
        "docker/secrets/encrypted",
        "docker/secrets/test",
        (".env.prod", ".env.prod.encrypted", ".env"),
        ("docker/.env.production", "docker-env.production.encrypted"),
        ("docker/compose/.env.db", "docker-env.db.encrypted"),
        ("docker/nginx/ssl/private.key", "nginx-ssl-private.key.encrypted"),
    )


def k8s_config() -> Config:
    return _template(
        "k8s/encrypted-secrets",
        "k8s/test-secrets",
        (".env.prod", ".env.prod.encrypted", ".env"),
        ("k8s/secrets/database-credentials.yaml", "database-credentials.yaml.encrypted"),
        ("k8s/secrets/api-keys.yaml", "api-keys.yaml.encrypted"),
        ("k8s/secrets/tls-cert.yaml", "tls-cert.yaml.encrypted"),
    )


def microservices_config() -> Config:
    return _template(
        "encrypted",
        "decrypted_test",
        (".env.prod", ".env.prod.encrypted", ".env"),
        ("services/auth/.env.prod", "auth-env.prod.encrypted", "services/auth/.env"),
        ("services/api/.env.prod", "api-env.prod.encrypted", "services/api/.env"),
        ("services/worker/.env.prod", "worker-env.prod.encrypted", "services/worker/.env"),
        ("shared/redis.conf", "shared-redis.conf.encrypted"),
    )


# Menu order for interactive `init`.
TEMPLATES = {
    "default": ("Default (React Native/Mobile App)", default_config),
    "reactnative": ("React Native", react_native_config),
    "flutter": ("Flutter", flutter_config),
    "web": ("Web Application", web_config),
    "docker": ("Docker Deployment", docker_config),
    "k8s": ("Kubernetes (K8s)", k8s_config),
    "microservices": ("Microservices", microservices_config),
}
TEMPLATE_ALIASES = {
    "react-native": "reactnative",
    "kubernetes": "k8s",
}
TEMPLATE_NAMES: List[str] = list(TEMPLATES)


def canonical_template_name(name: str) -> str:
    key = (name or "").strip().lower()
    key = TEMPLATE_ALIASES.get(key, key)
    return key if key in TEMPLATES else "default"


def template_config(name: str) -> Config:
    """Return the named template; unknown names fall back to ``default``."""
    return TEMPLATES[canonical_template_name(name)][1]()


__all__ = [
    "Config",
    "ConfigError",
    "DEFAULT_CONFIG_FILE",
    "FileMapping",
    "TEMPLATE_NAMES",
    "TEMPLATES",
    "canonical_template_name",
    "template_config",
]
