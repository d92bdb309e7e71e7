import unittest
import sys
import os
from unittest.mock import patch

from pydantic import ValidationError

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.settings import Settings, load_settings


class TestSettings(unittest.TestCase):
    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

        self.assertEqual(settings.bot_side, "yes")
        self.assertEqual(settings.bot_price_cents, 50)
        self.assertEqual(settings.bot_contracts, 1)
        self.assertEqual(settings.bot_max_markets, 1)
        self.assertFalse(settings.bot_dry_run)
        self.assertEqual(settings.series_ticker, "KXBTC15M")
        self.assertFalse(settings.has_credentials)
        self.assertIsNone(settings.request_timeout_seconds)

    def test_reads_prefixed_environment(self):
        env = {
            "KALSHI_BOT_SIDE": "no",
            "KALSHI_BOT_PRICE_CENTS": "37",
            "KALSHI_BOT_CONTRACTS": "4",
            "KALSHI_BOT_MAX_MARKETS": "3",
            "KALSHI_BOT_DRY_RUN": "true",
            "KALSHI_API_KEY": "key-id",
            "KALSHI_PRIVATE_KEY_PATH": "/tmp/key.pem",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = Settings(_env_file=None)

        self.assertEqual(settings.bot_side, "no")
        self.assertEqual(settings.bot_price_cents, 37)
        self.assertEqual(settings.bot_contracts, 4)
        self.assertEqual(settings.bot_max_markets, 3)
        self.assertTrue(settings.bot_dry_run)
        self.assertTrue(settings.has_credentials)

    def test_out_of_range_values_are_kept(self):
        """Clamping happens in the runner, not at load time"""
        env = {"KALSHI_BOT_PRICE_CENTS": "150", "KALSHI_BOT_CONTRACTS": "0"}
        with patch.dict(os.environ, env, clear=True):
            settings = Settings(_env_file=None)

        self.assertEqual(settings.bot_price_cents, 150)
        self.assertEqual(settings.bot_contracts, 0)

    def test_unparseable_price_raises(self):
        with patch.dict(os.environ, {"KALSHI_BOT_PRICE_CENTS": "abc"}, clear=True):
            with self.assertRaises(ValidationError):
                Settings(_env_file=None)

    def test_unknown_side_raises(self):
        with patch.dict(os.environ, {"KALSHI_BOT_SIDE": "up"}, clear=True):
            with self.assertRaises(ValidationError):
                Settings(_env_file=None)

    def test_overrides_win_over_environment(self):
        with patch.dict(os.environ, {"KALSHI_BOT_CONTRACTS": "9"}, clear=True):
            settings = load_settings(_env_file=None, bot_contracts=2)

        self.assertEqual(settings.bot_contracts, 2)

    def test_settings_are_immutable(self):
        settings = Settings(_env_file=None)
        with self.assertRaises(ValidationError):
            settings.bot_price_cents = 10


if __name__ == "__main__":
    unittest.main()
