import os
import tempfile
import unittest

from src.shared.config_validator import ConfigLoader, ConfigValidationError


class TestConfigLoader(unittest.TestCase):
    def setUp(self):
        self.loader = ConfigLoader()

    def test_defaults(self):
        config = self.loader.load_from_env({})
        gen = config.generation
        self.assertEqual(gen.corpus_files, ["chain1.txt", "chain2.txt", "chain3.txt"])
        self.assertEqual(gen.url_prefix, "/babble/")
        self.assertEqual(gen.status_prefix, "/babble/status")
        self.assertEqual(gen.word_count, 200)
        self.assertEqual(gen.paragraph_count, 3)
        self.assertEqual(gen.buffer_size, 5 * 1024)
        self.assertEqual(gen.poison, "")
        self.assertFalse(gen.count_bytes_served)
        self.assertEqual(config.server.port, 9001)
        self.assertEqual(config.security.rate_limit_requests, 0)
        self.assertEqual(config.log_level, "INFO")

    def test_corpus_list_is_trimmed(self):
        config = self.loader.load_from_env(
            {"BABBLER_CORPUS_FILES": " a.txt, b.txt ,,"}
        )
        self.assertEqual(config.generation.corpus_files, ["a.txt", "b.txt"])

    def test_empty_corpus_list_rejected(self):
        with self.assertRaises(ConfigValidationError):
            self.loader.load_from_env({"BABBLER_CORPUS_FILES": " , "})

    def test_prefix_must_be_slash_delimited(self):
        for prefix in ("babble/", "/babble", "/"):
            with self.assertRaises(ConfigValidationError):
                self.loader.load_from_env({"BABBLER_URL_PREFIX": prefix})

    def test_invalid_numbers_rejected(self):
        with self.assertRaises(ConfigValidationError):
            self.loader.load_from_env({"BABBLER_WORD_COUNT": "lots"})
        with self.assertRaises(ConfigValidationError):
            self.loader.load_from_env({"BABBLER_PORT": "70000"})
        with self.assertRaises(ConfigValidationError):
            self.loader.load_from_env({"LOG_LEVEL": "chatty"})

    def test_poison_from_file(self):
        directory = tempfile.mkdtemp()
        path = os.path.join(directory, "poison.html")
        with open(path, "w", encoding="utf-8") as f:
            f.write("<i>bad data</i>")
        config = self.loader.load_from_env({"BABBLER_POISON_FILE": path})
        self.assertEqual(config.generation.poison, "<i>bad data</i>")

    def test_inline_poison_wins(self):
        config = self.loader.load_from_env(
            {"BABBLER_POISON": "inline", "BABBLER_POISON_FILE": "/does/not/exist"}
        )
        self.assertEqual(config.generation.poison, "inline")

    def test_missing_poison_file_rejected(self):
        with self.assertRaises(ConfigValidationError):
            self.loader.load_from_env({"BABBLER_POISON_FILE": "/does/not/exist"})

    def test_flags(self):
        config = self.loader.load_from_env(
            {"BABBLER_COUNT_BYTES_SERVED": "TRUE", "DEBUG": "true"}
        )
        self.assertTrue(config.generation.count_bytes_served)
        self.assertTrue(config.debug)


if __name__ == "__main__":
    unittest.main()
