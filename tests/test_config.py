import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from resume_pilot.config.settings import ConfigManager

class TestConfigManager(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

    def load(self, **env):
        env.setdefault("DATA_DIR", self.tmp.name)
        with patch.dict(os.environ, env, clear=True):
            return ConfigManager(env_file=str(Path(self.tmp.name) / "missing.env"))

    def test_defaults(self):
        manager = self.load()
        config = manager.get_app_config()

        self.assertEqual(config.llm.default_model, "google/gemini-2.0-flash-001")
        self.assertFalse(config.llm.use_local_llm)
        self.assertEqual(config.database.path, str(Path(self.tmp.name) / "resume_pilot.db"))
        self.assertEqual(config.user.default_user_id, "local-user")
        self.assertTrue((Path(self.tmp.name) / "logs").is_dir())

    def test_mail_relay_settings(self):
        manager = self.load(EMAIL_HOST="smtp.resumepilot.test", EMAIL_PORT="465",
                            EMAIL_USER="noreply@resumepilot.test", EMAIL_PASS="secret",
                            OPERATOR_EMAILS="a@resumepilot.test, b@resumepilot.test,")
        mail = manager.get_mail_config()

        self.assertEqual(mail.port, 465)
        self.assertEqual(mail.operator_emails, ["a@resumepilot.test", "b@resumepilot.test"])
        self.assertTrue(mail.is_configured)

    def test_invalid_port_is_ignored(self):
        mail = self.load(EMAIL_PORT="smtp").get_mail_config()

        self.assertIsNone(mail.port)
        self.assertIn("EMAIL_PORT", mail.missing_settings())

    def test_validation_requires_an_llm_backend(self):
        issues = self.load().validate_config()

        self.assertEqual(len(issues["errors"]), 1)
        self.assertTrue(any("Mail relay not configured" in w for w in issues["warnings"]))

    def test_validation_passes_with_backend(self):
        issues = self.load(GEMINI_API_KEY="g-key-123456789").validate_config()
        self.assertEqual(issues["errors"], [])

    def test_secrets_are_masked(self):
        masked = self.load(OPENROUTER_API_KEY="sk-or-v1-abcdefghijkl",
                           EMAIL_PASS="pw").mask_sensitive_config()

        self.assertEqual(masked["llm"]["openrouter_api_key"], "sk-or-v1...")
        self.assertEqual(masked["mail"]["password"], "***")

if __name__ == '__main__':
    unittest.main()
