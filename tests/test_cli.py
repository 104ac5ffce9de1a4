import contextlib
import importlib
import io
import os
import subprocess
import sys
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import patch

REPO_ROOT = Path(__file__).resolve().parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

try:
    from secureflow.main import main, secureflow
    from secureflow.config import Config, FileMapping
    cli_module = importlib.import_module("secureflow.cli")
except ModuleNotFoundError as exc:  # pragma: no cover - dependency missing
    main = None
    _IMPORT_ERROR = exc
else:
    _IMPORT_ERROR = None


PASSWORD = "ci-password"
_ENV_KEYS = (
    "SECUREFLOW_CONFIG",
    "SECUREFLOW_PASSWORD",
    "SECUREFLOW_NONINTERACTIVE",
    "SECUREFLOW_CLI_PLAIN",
    "SECUREFLOW_CLI_STYLE",
)


@unittest.skipIf(main is None, f"dependency unavailable: {_IMPORT_ERROR}")
class CliTests(unittest.TestCase):

    def setUp(self) -> None:
        self.tmpdir = TemporaryDirectory()
        self.tmp_path = Path(self.tmpdir.name)
        self._old_cwd = os.getcwd()
        os.chdir(self.tmp_path)
        env = {key: value for key, value in os.environ.items() if key not in _ENV_KEYS}
        env["NO_COLOR"] = "1"
        self._env = patch.dict(os.environ, env, clear=True)
        self._env.start()

    def tearDown(self) -> None:
        self._env.stop()
        os.chdir(self._old_cwd)
        self.tmpdir.cleanup()

    def _run(self, *argv):
        out = io.StringIO()
        with contextlib.redirect_stdout(out):
            code = main(list(argv))
        return code, out.getvalue()

    def _write(self, rel: str, data: bytes) -> Path:
        path = self.tmp_path / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return path

    def _project(self, *mappings) -> None:
        Config("enc_keys", "test_dec_keys", tuple(mappings)).save(self.tmp_path / "secureflow.yaml")

    # init
    def test_init_non_interactive_uses_default_template(self):
        code, out = self._run("--non-interactive", "init")
        self.assertEqual(code, 0)
        self.assertIn("Using default template", out)
        self.assertIn("Created secureflow.yaml", out)
        cfg = Config.load(self.tmp_path / "secureflow.yaml")
        self.assertEqual(cfg.output_dir, "enc_keys")
        self.assertEqual(cfg.files[0].copy_to, ".env")

    def test_init_refuses_existing_config_non_interactive(self):
        self.assertEqual(self._run("--non-interactive", "init")[0], 0)
        code, out = self._run("--non-interactive", "init", "--template", "web")
        self.assertEqual(code, 1)
        self.assertIn("config file already exists", out)
        self.assertEqual(Config.load(self.tmp_path / "secureflow.yaml").files[1].input, "android/app/keystore.jks")

    def test_init_template_flag(self):
        code, out = self._run("init", "--template", "flutter", "--non-interactive")
        self.assertEqual(code, 0)
        self.assertIn("Using flutter template", out)
        inputs = [m.input for m in Config.load(self.tmp_path / "secureflow.yaml").files]
        self.assertIn("ios/Runner/GoogleService-Info.plist", inputs)

    def test_init_unknown_template_falls_back(self):
        code, out = self._run("--non-interactive", "init", "--template", "cobol")
        self.assertEqual(code, 0)
        self.assertIn("Unknown template 'cobol'", out)
        self.assertIn("Using default template", out)

    def test_init_custom_config_path(self):
        code, _ = self._run("--non-interactive", "--config", "conf/sf.yaml", "init", "--template", "k8s")
        self.assertEqual(code, 1)
        (self.tmp_path / "conf").mkdir()
        code, _ = self._run("--non-interactive", "--config", "conf/sf.yaml", "init", "--template", "k8s")
        self.assertEqual(code, 0)
        self.assertEqual(Config.load(self.tmp_path / "conf" / "sf.yaml").output_dir, "k8s/encrypted-secrets")

    def test_init_interactive_menu(self):
        with patch("builtins.input", side_effect=["3"]):
            code, out = self._run("init")
        self.assertEqual(code, 0)
        self.assertIn("7. Microservices", out)
        self.assertIn("Using flutter template", out)

    def test_init_interactive_overwrite_declined(self):
        self._run("--non-interactive", "init", "--template", "docker")
        with patch("builtins.input", side_effect=["n"]):
            code, out = self._run("init", "--template", "web")
        self.assertEqual(code, 0)
        self.assertIn("Aborted.", out)
        self.assertEqual(Config.load(self.tmp_path / "secureflow.yaml").output_dir, "docker/secrets/encrypted")

    # encrypt / decrypt
    def test_encrypt_decrypt_flow(self):
        secret = b"API_KEY=abc123\nDB_PASSWORD=hunter2\n"
        source = self._write("secrets/app.env", secret)
        self._project(
            FileMapping("secrets/app.env", "app.env.encrypted", "app/.env"),
            FileMapping("missing.txt", "missing.txt.encrypted"),
        )

        code, out = self._run("--non-interactive", "--password", PASSWORD, "encrypt")
        self.assertEqual(code, 0)
        self.assertIn("Warning: missing.txt not found, skipping", out)
        self.assertIn("1 file(s) saved to enc_keys", out)
        container = (self.tmp_path / "enc_keys" / "app.env.encrypted").read_bytes()
        self.assertTrue(container.startswith(b"Salted__"))
        self.assertEqual(secureflow.decrypt(container, PASSWORD), secret)

        report = (self.tmp_path / "enc_keys" / "report.txt").read_text(encoding="utf-8")
        self.assertTrue(report.startswith("Encryption Report\n"))
        self.assertIn("Note: Encrypted secrets for CI/CD", report)
        self.assertIn("Password Hint: N/A", report)
        self.assertIn("File:           secrets/app.env", report)
        self.assertIn("Size (bytes):   35", report)
        self.assertIn("Lines:          2", report)
        self.assertNotIn("missing.txt", report)

        source.unlink()
        code, out = self._run("decrypt", "--password", PASSWORD, "--non-interactive")
        self.assertEqual(code, 0)
        self.assertIn("Copied to app/.env", out)
        self.assertIn("(1 file(s))", out)
        self.assertEqual(source.read_bytes(), secret)
        self.assertEqual((self.tmp_path / "app" / ".env").read_bytes(), secret)

    def test_test_command_writes_to_test_output_dir(self):
        self._write("config/db.yml", b"password: s3cret\n")
        self._project(FileMapping("config/db.yml", "db.yml.encrypted", "db.yml"))
        self.assertEqual(self._run("--non-interactive", "--password", PASSWORD, "encrypt")[0], 0)

        code, out = self._run("--non-interactive", "--password", PASSWORD, "test")
        self.assertEqual(code, 0)
        self.assertIn("Test decryption successful!", out)
        self.assertEqual((self.tmp_path / "test_dec_keys" / "db.yml").read_bytes(), b"password: s3cret\n")
        self.assertFalse((self.tmp_path / "db.yml").exists())

    def test_decrypt_wrong_password(self):
        mappings = []
        for index in range(3):
            self._write(f"secret{index}.txt", f"secret number {index}\n".encode())
            mappings.append(FileMapping(f"secret{index}.txt", f"secret{index}.encrypted"))
        self._project(*mappings)
        self.assertEqual(self._run("--non-interactive", "--password", PASSWORD, "encrypt")[0], 0)

        code, out = self._run("--non-interactive", "--password", "not-the-password", "decrypt")
        self.assertEqual(code, 1)
        self.assertIn("decryption failed (wrong password?)", out)

    def test_decrypt_corrupt_container(self):
        self._project(FileMapping("app.env", "app.env.encrypted"))
        self._write("enc_keys/app.env.encrypted", b"garbage")
        code, out = self._run("--non-interactive", "--password", PASSWORD, "decrypt")
        self.assertEqual(code, 1)
        self.assertIn("decryption failed: invalid encrypted file", out)
        self.assertFalse((self.tmp_path / "app.env").exists())

    def test_decrypt_nothing_to_do(self):
        self._project(FileMapping("app.env", "app.env.encrypted"))
        code, out = self._run("--non-interactive", "--password", PASSWORD, "decrypt")
        self.assertEqual(code, 1)
        self.assertIn("no files were decrypted", out)

    def test_non_interactive_requires_password(self):
        self._write("app.env", b"A=1\n")
        self._project(FileMapping("app.env", "app.env.encrypted"))
        code, out = self._run("--non-interactive", "encrypt")
        self.assertEqual(code, 1)
        self.assertIn("password required in non-interactive mode", out)

    def test_password_from_environment(self):
        self._write("app.env", b"A=1\n")
        self._project(FileMapping("app.env", "app.env.encrypted"))
        os.environ["SECUREFLOW_PASSWORD"] = PASSWORD
        os.environ["SECUREFLOW_NONINTERACTIVE"] = "1"
        code, _ = self._run("encrypt")
        self.assertEqual(code, 0)
        container = (self.tmp_path / "enc_keys" / "app.env.encrypted").read_bytes()
        self.assertEqual(secureflow.decrypt(container, PASSWORD), b"A=1\n")

    def test_config_path_from_environment(self):
        self._write("app.env", b"A=1\n")
        Config("out", "test_out", (FileMapping("app.env", "a.enc"),)).save(self.tmp_path / "other.yaml")
        os.environ["SECUREFLOW_CONFIG"] = "other.yaml"
        code, _ = self._run("--non-interactive", "--password", PASSWORD, "encrypt")
        self.assertEqual(code, 0)
        self.assertTrue((self.tmp_path / "out" / "a.enc").exists())

    def test_encrypt_without_inputs(self):
        self._project(FileMapping("nope.env", "nope.env.encrypted"))
        code, out = self._run("--non-interactive", "--password", PASSWORD, "encrypt")
        self.assertEqual(code, 1)
        self.assertIn("no files were encrypted", out)

    def test_missing_config(self):
        code, out = self._run("--non-interactive", "--password", PASSWORD, "encrypt")
        self.assertEqual(code, 1)
        self.assertIn("failed to load config", out)

    def test_interactive_encrypt_prompts(self):
        self._write("app.env", b"A=1\n")
        self._project(FileMapping("app.env", "app.env.encrypted"))
        with patch("getpass.getpass", return_value=PASSWORD), \
                patch("builtins.input", side_effect=["my hint", "my note"]):
            code, _ = self._run("encrypt")
        self.assertEqual(code, 0)
        report = (self.tmp_path / "enc_keys" / "report.txt").read_text(encoding="utf-8")
        self.assertIn("Note: my note", report)
        self.assertIn("Password Hint: my hint", report)

    def test_interactive_empty_password_rejected(self):
        self._project(FileMapping("app.env", "app.env.encrypted"))
        with patch("getpass.getpass", return_value=""):
            code, out = self._run("decrypt")
        self.assertEqual(code, 1)
        self.assertIn("password cannot be empty", out)

    def test_version_flag(self):
        out = io.StringIO()
        with contextlib.redirect_stdout(out), self.assertRaises(SystemExit) as ctx:
            main(["--version"])
        self.assertEqual(ctx.exception.code, 0)
        self.assertEqual(out.getvalue().strip(), f"secureflow {secureflow.ENGINE_VERSION}")

    def test_keyboard_interrupt_exit_code(self):
        err = io.StringIO()
        with patch.object(cli_module, "cli", side_effect=KeyboardInterrupt), contextlib.redirect_stderr(err):
            self.assertEqual(cli_module.main([]), 130)
        self.assertIn("Exiting...", err.getvalue())

    def test_theme_plain_and_styled(self):
        plain = cli_module._CliTheme(True)
        self.assertEqual(plain.ok("done"), "done")
        styled = cli_module._CliTheme(False)
        self.assertIn("✅", styled.ok("done"))
        self.assertIn("done", styled.err("done"))
        self.assertTrue(cli_module._cli_plain_mode())


@unittest.skipIf(main is None, f"dependency unavailable: {_IMPORT_ERROR}")
class ModuleEntryPointTests(unittest.TestCase):

    def _run_module(self, cwd, *args):
        env = dict(os.environ)
        env["PYTHONPATH"] = str(REPO_ROOT) + os.pathsep + env.get("PYTHONPATH", "")
        env["NO_COLOR"] = "1"
        for key in _ENV_KEYS:
            env.pop(key, None)
        return subprocess.run(
            [sys.executable, "-m", "secureflow", *args],
            cwd=cwd,
            env=env,
            capture_output=True,
            text=True,
            timeout=120,
        )

    def test_version(self):
        with TemporaryDirectory() as tmp:
            result = self._run_module(tmp, "--version")
        self.assertEqual(result.returncode, 0, result.stderr)
        self.assertTrue(result.stdout.startswith("secureflow "))

    def test_init_and_missing_command(self):
        with TemporaryDirectory() as tmp:
            result = self._run_module(tmp, "--non-interactive", "init")
            self.assertEqual(result.returncode, 0, result.stderr)
            self.assertTrue((Path(tmp) / "secureflow.yaml").exists())
            result = self._run_module(tmp)
        self.assertEqual(result.returncode, 2)


if __name__ == "__main__":
    unittest.main()
