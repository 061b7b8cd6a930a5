"""Tests for CLI entrypoint wiring."""

from __future__ import annotations

import io
from contextlib import redirect_stdout
import unittest
from unittest.mock import patch

from groq_chat.__main__ import main


class MainEntrypointTests(unittest.TestCase):
    """Validate top-level main() behavior."""

    def test_main_ensures_config_and_runs_app(self) -> None:
        with patch("groq_chat.__main__.ensure_config_dir") as ensure_mock, patch(
            "groq_chat.__main__.GroqChatApp"
        ) as app_cls_mock:
            app_instance = app_cls_mock.return_value
            main([])
            ensure_mock.assert_called_once()
            app_cls_mock.assert_called_once()
            app_instance.run.assert_called_once()

    def test_version_flag_prints_and_exits(self) -> None:
        buffer = io.StringIO()
        with patch("groq_chat.__main__.GroqChatApp") as app_cls_mock, redirect_stdout(
            buffer
        ):
            main(["--version"])
        app_cls_mock.assert_not_called()
        self.assertTrue(buffer.getvalue().startswith("groqchat "))

    def test_serve_runs_proxy_with_cli_overrides(self) -> None:
        with patch("groq_chat.__main__.ensure_config_dir"), patch(
            "groq_chat.__main__.load_dotenv"
        ) as dotenv_mock, patch(
            "groq_chat.__main__.configure_logging"
        ), patch(
            "groq_chat.__main__.run_server"
        ) as run_mock, patch(
            "groq_chat.__main__.GroqChatApp"
        ) as app_cls_mock, patch.dict(
            "os.environ", {"GROQ_API_KEY": "k"}, clear=False
        ):
            main(["serve", "--host", "0.0.0.0", "--port", "9000"])

        dotenv_mock.assert_called_once()
        app_cls_mock.assert_not_called()
        settings = run_mock.call_args.args[0]
        self.assertEqual(settings.host, "0.0.0.0")
        self.assertEqual(settings.port, 9000)
        self.assertEqual(settings.api_key, "k")


if __name__ == "__main__":
    unittest.main()
