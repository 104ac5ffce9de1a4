"""Command-line front end: ``init``, ``encrypt``, ``decrypt`` and ``test``."""

import argparse
import getpass
import os
import sys
from datetime import datetime
from pathlib import Path

import colorama

from .config import (
    DEFAULT_CONFIG_FILE,
    TEMPLATE_NAMES,
    TEMPLATES,
    Config,
    ConfigError,
    canonical_template_name,
    template_config,
)
from .engine import FormatError, PaddingError, SecureFlowError, secureflow
from .version import __version__

REPORT_FILE = "report.txt"
DEFAULT_REPORT_NOTE = "Encrypted secrets for CI/CD"
REPORT_RULE = "================="
REPORT_ENTRY_RULE = "-" * 40


class _CliError(Exception):
    pass


def _env_flag(name: str) -> bool:
    value = (os.getenv(name) or "").strip().lower()
    return value in {"1", "true", "yes", "on"}


def _cli_plain_mode() -> bool:
    if os.getenv("NO_COLOR"):
        return True
    if _env_flag("SECUREFLOW_CLI_PLAIN"):
        return True
    style = (os.getenv("SECUREFLOW_CLI_STYLE") or "").strip().lower()
    return style in {"plain", "boring", "0", "false", "off"}


class _CliTheme:
    def __init__(self, plain: bool):
        self.plain = plain
        self.reset = "" if plain else colorama.Style.RESET_ALL
        self.bold = "" if plain else colorama.Style.BRIGHT
        self.red = "" if plain else colorama.Fore.RED
        self.green = "" if plain else colorama.Fore.GREEN
        self.yellow = "" if plain else colorama.Fore.YELLOW
        self.blue = "" if plain else colorama.Fore.BLUE
        self.cyan = "" if plain else colorama.Fore.CYAN
        if not plain:
            colorama.just_fix_windows_console()

    def _wrap(self, msg: str, color: str, emoji: str | None = None) -> str:
        if self.plain:
            return msg
        prefix = f"{emoji} " if emoji else ""
        return f"{self.bold}{color}{prefix}{msg}{self.reset}"

    def ok(self, msg: str) -> str:
        return self._wrap(msg, self.green, "✅")

    def warn(self, msg: str) -> str:
        return self._wrap(msg, self.yellow, "⚠️")

    def err(self, msg: str) -> str:
        return self._wrap(msg, self.red, "❌")

    def info(self, msg: str) -> str:
        return self._wrap(msg, self.cyan, "✨")

    def step(self, msg: str) -> str:
        return self._wrap(msg, self.yellow, "📦")

    def prompt(self, msg: str, emoji: str = "🔐") -> str:
        return self._wrap(msg, self.blue, emoji)


def _read_line(prompt: str) -> str:
    try:
        return input(prompt).strip()
    except EOFError:
        return ""


def _resolve_password(args, theme: _CliTheme, prompt: str) -> str:
    if args.password:
        return args.password
    env_password = os.getenv("SECUREFLOW_PASSWORD")
    if env_password:
        return env_password
    if args.non_interactive:
        raise _CliError("password required in non-interactive mode (use --password flag)")
    try:
        password = getpass.getpass(theme.prompt(prompt))
    except EOFError as exc:
        raise _CliError("failed to read password") from exc
    if not password:
        raise _CliError("password cannot be empty")
    return password


def _load_config(args) -> Config:
    try:
        return Config.load(args.config)
    except ConfigError as exc:
        raise _CliError(f"failed to load config: {exc}") from exc


def _ensure_dir(path) -> Path:
    try:
        return secureflow.ensure_dir(path)
    except OSError as exc:
        raise _CliError(f"failed to create directory {path}: {exc}") from exc


def _run_init(args, theme: _CliTheme) -> int:
    config_path = Path(args.config)
    if config_path.exists():
        print(theme.warn(f"Config file already exists: {config_path}"))
        if args.non_interactive:
            raise _CliError("config file already exists")
        if _read_line("Overwrite? (y/N): ") not in ("y", "Y"):
            print("Aborted.")
            return 0

    if args.template:
        name = canonical_template_name(args.template)
        if name == "default" and args.template.strip().lower() != "default":
            print(theme.warn(f"Unknown template '{args.template}', using default"))
    elif not args.non_interactive:
        print(theme.prompt("Select a configuration template:", "🎨"))
        print()
        for index, key in enumerate(TEMPLATE_NAMES, start=1):
            print(f"  {index}. {TEMPLATES[key][0]}")
        print()
        choice = _read_line(f"Enter your choice (1-{len(TEMPLATE_NAMES)}) [1]: ") or "1"
        if choice.isdigit() and 1 <= int(choice) <= len(TEMPLATE_NAMES):
            name = TEMPLATE_NAMES[int(choice) - 1]
        else:
            name = "default"
    else:
        name = "default"
    print(theme.info(f"Using {name} template"))

    try:
        template_config(name).save(config_path)
    except ConfigError as exc:
        raise _CliError(f"failed to create config file: {exc}") from exc

    print(theme.ok(f"Created {config_path}"))
    print("\nYou can now edit this file to match your project structure.")
    print("Then run: secureflow encrypt")
    return 0


def _write_report_header(report, note: str, hint: str) -> None:
    report.write("Encryption Report\n")
    report.write(f"{REPORT_RULE}\n\n")
    report.write(f"Note: {note}\n")
    report.write(f"Password Hint: {hint or 'N/A'}\n")
    report.write(f"Created at: {datetime.now():%Y-%m-%d}\n")
    report.write(f"{REPORT_RULE}\n\n")


def _write_report_entry(report, mapping, info) -> None:
    report.write(f"File:           {mapping.input}\n")
    report.write(f"Encrypted As:   {mapping.output}\n")
    report.write(f"Size (bytes):   {info.size}\n")
    report.write(f"Lines:          {info.lines}\n")
    report.write(f"Last Modified:  {info.last_modified:%Y-%m-%d %H:%M:%S}\n")
    report.write(f"{REPORT_ENTRY_RULE}\n\n")


def _run_encrypt(args, theme: _CliTheme) -> int:
    cfg = _load_config(args)
    password = _resolve_password(args, theme, "Enter password to encrypt your secrets: ")

    hint = ""
    note = ""
    if not args.non_interactive:
        hint = _read_line(theme.prompt("(Optional) Enter a password hint (leave blank to skip): ", "🔑"))
        note = _read_line(theme.prompt("(Optional) Enter a short note (leave blank for default): ", "📝"))
    note = note or DEFAULT_REPORT_NOTE
    print()

    output_dir = _ensure_dir(cfg.output_dir)
    report_path = output_dir / REPORT_FILE
    try:
        report = open(report_path, "w", encoding="utf-8")
    except OSError as exc:
        raise _CliError(f"failed to create report file: {exc}") from exc

    successes = 0
    with report:
        _write_report_header(report, note, hint)
        for mapping in cfg.files:
            print(theme.step(f"Encrypting {mapping.input}..."))
            if not secureflow.file_exists(mapping.input):
                print(theme.warn(f"Warning: {mapping.input} not found, skipping"))
                print()
                continue
            try:
                info = secureflow.get_file_info(mapping.input)
            except OSError as exc:
                print(theme.warn(f"Warning: Could not get file info for {mapping.input}: {exc}"))
                print()
                continue
            output_path = output_dir / mapping.output
            try:
                secureflow.encrypt_file(mapping.input, output_path, password)
            except (OSError, SecureFlowError) as exc:
                print(theme.err(f"Failed to encrypt {mapping.input}: {exc}"))
                print()
                continue
            size = secureflow._human_readable_size(info.size)
            print(theme.ok(f"{mapping.input} encrypted successfully -> {output_path} ({size})"))
            print()
            _write_report_entry(report, mapping, info)
            successes += 1

    if successes == 0:
        raise _CliError("no files were encrypted")

    print(theme.ok(f"Encryption complete. {successes} file(s) saved to {cfg.output_dir}"))
    print(theme.info(f"Report saved to {report_path}"))
    return 0


def _decrypt_mappings(cfg: Config, password: str, theme: _CliTheme, *, test_mode: bool) -> int:
    label = "test decryption" if test_mode else "decryption"
    successes = 0
    for mapping in cfg.files:
        encrypted_path = Path(cfg.output_dir) / mapping.output
        print(theme.step(f"Decrypting {encrypted_path}..."))
        if not secureflow.file_exists(encrypted_path):
            print(theme.warn(f"Warning: {encrypted_path} not found, skipping"))
            print()
            continue

        if test_mode:
            target = Path(cfg.test_output_dir) / Path(mapping.input).name
        else:
            target = Path(mapping.input)
            if str(target.parent) not in ("", "."):
                try:
                    secureflow.ensure_dir(target.parent)
                except OSError as exc:
                    print(theme.err(f"Failed to create directory {target.parent}: {exc}"))
                    print()
                    continue

        try:
            secureflow.decrypt_file(encrypted_path, target, password)
        except PaddingError as exc:
            print(theme.err(f"Failed to decrypt {encrypted_path}: {exc}"))
            print()
            raise _CliError(f"{label} failed (wrong password?)") from exc
        except FormatError as exc:
            print(theme.err(f"Failed to decrypt {encrypted_path}: {exc}"))
            print()
            raise _CliError(f"{label} failed: invalid encrypted file {encrypted_path}") from exc
        except (OSError, SecureFlowError) as exc:
            print(theme.err(f"Failed to decrypt {encrypted_path}: {exc}"))
            print()
            raise _CliError(f"{label} failed: {exc}") from exc

        print(theme.ok(f"{encrypted_path} decrypted successfully -> {target}"))

        if not test_mode and mapping.copy_to:
            try:
                copy_parent = Path(mapping.copy_to).parent
                if str(copy_parent) not in ("", "."):
                    secureflow.ensure_dir(copy_parent)
                secureflow.copy_file(target, mapping.copy_to)
            except OSError as exc:
                print(theme.warn(f"Warning: Failed to copy {target} to {mapping.copy_to}: {exc}"))
            else:
                print(theme.ok(f"Copied to {mapping.copy_to}"))

        print()
        successes += 1
    return successes


def _run_decrypt(args, theme: _CliTheme) -> int:
    cfg = _load_config(args)
    password = _resolve_password(args, theme, "Enter password to decrypt your secrets: ")
    print()
    print(theme.step("Starting decryption process..."))
    print()

    successes = _decrypt_mappings(cfg, password, theme, test_mode=False)
    if successes == 0:
        raise _CliError("no files were decrypted")

    print(theme.ok(f"All secrets decrypted successfully! ({successes} file(s))"))
    return 0


def _run_test(args, theme: _CliTheme) -> int:
    cfg = _load_config(args)
    password = _resolve_password(args, theme, "[TEST] Enter password to test decrypt your secrets: ")
    _ensure_dir(cfg.test_output_dir)
    print()
    print(theme.step("[TEST] Starting decryption process..."))
    print()

    successes = _decrypt_mappings(cfg, password, theme, test_mode=True)
    if successes == 0:
        raise _CliError("no files were decrypted")

    print(theme.ok(f"Test decryption successful! ({successes} file(s))"))
    print(theme.info(f"Test files saved to: {cfg.test_output_dir}"))
    return 0


def _add_global_options(parser: argparse.ArgumentParser, *, suppress: bool) -> None:
    # Subcommands re-declare the global options with suppressed defaults so
    # they are accepted after the command name without clobbering earlier ones.
    def default(value):
        return argparse.SUPPRESS if suppress else value

    parser.add_argument(
        "--config",
        default=default(os.getenv("SECUREFLOW_CONFIG") or DEFAULT_CONFIG_FILE),
        help=f"Config file path (default: $SECUREFLOW_CONFIG or {DEFAULT_CONFIG_FILE})"
    )
    parser.add_argument(
        "--non-interactive",
        action="store_true",
        default=default(_env_flag("SECUREFLOW_NONINTERACTIVE")),
        help="Never prompt; fail instead (also SECUREFLOW_NONINTERACTIVE=1)"
    )
    parser.add_argument(
        "--password",
        default=default(""),
        help="Encryption/decryption password (falls back to $SECUREFLOW_PASSWORD)"
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="secureflow",
        description="SecureFlow - encrypt and decrypt project secrets (OpenSSL-compatible AES-256-CBC)"
    )
    _add_global_options(parser, suppress=False)
    parser.add_argument("--version", action="version", version=f"secureflow {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    init = subparsers.add_parser("init", help="Create a secureflow.yaml configuration file")
    init.add_argument(
        "--template",
        default="",
        help="Config template: " + ", ".join(TEMPLATE_NAMES)
    )
    init.set_defaults(handler=_run_init)

    encrypt = subparsers.add_parser("encrypt", help="Encrypt the files listed in the configuration")
    encrypt.set_defaults(handler=_run_encrypt)

    decrypt = subparsers.add_parser(
        "decrypt",
        help="Decrypt the configured files back to their original locations"
    )
    decrypt.set_defaults(handler=_run_decrypt)

    test = subparsers.add_parser(
        "test",
        help="Decrypt into the test output directory without touching real files"
    )
    test.set_defaults(handler=_run_test)

    for subparser in (init, encrypt, decrypt, test):
        _add_global_options(subparser, suppress=True)
    return parser


def cli(argv=None) -> int:
    theme = _CliTheme(_cli_plain_mode())
    args = _build_parser().parse_args(argv)
    try:
        return args.handler(args, theme)
    except _CliError as exc:
        print(theme.err(str(exc)))
        return 1


def main(argv=None) -> int:
    try:
        return cli(argv)
    except KeyboardInterrupt:
        print("Exiting...", file=sys.stderr)
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
