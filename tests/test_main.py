import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from keyring.errors import NoKeyringError
from typer.testing import CliRunner

from s3_index import __main__ as cli


class ServeCommandTests(unittest.TestCase):
    def setUp(self):
        self.runner = CliRunner()
        patcher = mock.patch.object(cli.uvicorn, "run")
        self.uvicorn_run = patcher.start()
        self.addCleanup(patcher.stop)
        secret_patcher = mock.patch.object(cli, "resolve_secret_key", return_value="s3cret")
        self.resolve_secret_key = secret_patcher.start()
        self.addCleanup(secret_patcher.stop)
        app_patcher = mock.patch.object(cli, "create_app", return_value="asgi-app")
        self.create_app = app_patcher.start()
        self.addCleanup(app_patcher.stop)

    def test_serve_builds_config_from_options(self):
        result = self.runner.invoke(
            cli.app,
            ["serve", "--bucket", "media", "--endpoint", "https://minio.local", "--access-key", "access", "--ttl", "900", "--port", "8080"],
        )

        self.assertEqual(0, result.exit_code, result.output)
        config = self.create_app.call_args.args[0]
        self.assertEqual("media", config.bucket)
        self.assertEqual("https://minio.local", config.endpoint_url)
        self.assertEqual("custom", config.region)
        self.assertEqual("s3cret", config.secret_key)
        self.assertEqual(900, config.link_ttl)
        self.resolve_secret_key.assert_called_once_with("access")
        self.uvicorn_run.assert_called_once()
        self.assertEqual("asgi-app", self.uvicorn_run.call_args.args[0])
        self.assertEqual("127.0.0.1", self.uvicorn_run.call_args.kwargs["host"])
        self.assertEqual(8080, self.uvicorn_run.call_args.kwargs["port"])

    def test_serve_reads_config_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "s3_index.json"
            path.write_text(
                json.dumps({"bucket": "from-file", "max_pages": 20, "strict_prefixes": True, "port": 9000}),
                encoding="utf-8",
            )

            result = self.runner.invoke(cli.app, ["serve", "--config", str(path), "--max-pages", "5"])

        self.assertEqual(0, result.exit_code, result.output)
        config = self.create_app.call_args.args[0]
        self.assertEqual("from-file", config.bucket)
        self.assertEqual(5, config.max_pages)
        self.assertTrue(config.strict_prefixes)
        self.assertEqual(9000, self.uvicorn_run.call_args.kwargs["port"])

    def test_serve_rejects_missing_bucket(self):
        result = self.runner.invoke(cli.app, ["serve"])

        self.assertEqual(2, result.exit_code)
        self.uvicorn_run.assert_not_called()

    def test_serve_rejects_invalid_ttl(self):
        result = self.runner.invoke(cli.app, ["serve", "--bucket", "media", "--ttl", "0"])

        self.assertEqual(2, result.exit_code)
        self.uvicorn_run.assert_not_called()


class StoreSecretCommandTests(unittest.TestCase):
    def test_store_secret_saves_to_keychain(self):
        runner = CliRunner()
        with mock.patch.object(cli.KeychainStore, "set_secret") as set_secret:
            result = runner.invoke(cli.app, ["store-secret", "access"], input="s3cret\n")

        self.assertEqual(0, result.exit_code, result.output)
        set_secret.assert_called_once_with("access", "s3cret")

    def test_store_secret_reports_keychain_failure(self):
        runner = CliRunner()
        with mock.patch.object(cli.KeychainStore, "set_secret", side_effect=NoKeyringError("no backend")):
            result = runner.invoke(cli.app, ["store-secret", "access"], input="s3cret\n")

        self.assertEqual(1, result.exit_code)
        self.assertIsInstance(result.exception, SystemExit)
        self.assertNotIn("Stored secret", result.output)


if __name__ == "__main__":
    unittest.main()
