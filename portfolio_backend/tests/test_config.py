import os
import unittest
from unittest.mock import patch

from pydantic import ValidationError

from portfolio_backend.config import Settings


class SettingsTests(unittest.TestCase):
    def test_signing_key_is_required(self):
        with patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(ValidationError) as ctx:
                Settings(_env_file=None)
        self.assertIn("jwt_secret_key", str(ctx.exception))

    def test_empty_signing_key_is_rejected(self):
        with patch.dict(os.environ, {"JWT_SECRET_KEY": ""}, clear=True):
            with self.assertRaises(ValidationError):
                Settings(_env_file=None)

    def test_signing_key_from_environment(self):
        env = {"JWT_SECRET_KEY": "s3cret", "PORTFOLIO_URL": "https://ada.example.com"}
        with patch.dict(os.environ, env, clear=True):
            settings = Settings(_env_file=None)
        self.assertEqual(settings.jwt_secret_key, "s3cret")
        self.assertEqual(settings.allowed_origins, ["https://ada.example.com"])


if __name__ == "__main__":
    unittest.main()
