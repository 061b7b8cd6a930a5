"""Tests for top-level package lazy exports."""

from __future__ import annotations

import unittest

import groq_chat


class PackageExportTests(unittest.TestCase):
    """Ensure __getattr__ and exported symbols behave as expected."""

    def test_lazy_exports_resolve_known_symbols(self) -> None:
        self.assertTrue(callable(groq_chat.load_config))
        self.assertTrue(callable(groq_chat.ensure_config_dir))
        self.assertTrue(callable(groq_chat.create_app))
        self.assertIsNotNone(groq_chat.GroqChatApp)
        self.assertIsNotNone(groq_chat.CompletionGateway)
        self.assertIsNotNone(groq_chat.Transcript)
        self.assertIsNotNone(groq_chat.TranscriptEntry)
        self.assertTrue(issubclass(groq_chat.UpstreamError, groq_chat.CompletionError))
        self.assertTrue(issubclass(groq_chat.CompletionError, groq_chat.GroqChatError))
        self.assertTrue(
            issubclass(groq_chat.SubmissionRejected, groq_chat.GroqChatError)
        )
        self.assertTrue(issubclass(groq_chat.AttachmentError, groq_chat.GroqChatError))
        self.assertTrue(
            issubclass(groq_chat.ConfigValidationError, groq_chat.GroqChatError)
        )

    def test_every_name_in_all_resolves(self) -> None:
        for name in groq_chat.__all__:
            self.assertIsNotNone(getattr(groq_chat, name), name)

    def test_unknown_symbol_raises_attribute_error(self) -> None:
        with self.assertRaises(AttributeError):
            getattr(groq_chat, "THIS_DOES_NOT_EXIST")


if __name__ == "__main__":
    unittest.main()
