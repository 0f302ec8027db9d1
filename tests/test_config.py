import json
import os
import shutil
import tempfile
import unittest

from src.core.config import ConfigManager, ViewPreferences
from src.core.session import AccountSession
from src.core.errors import AuthorizationError

class TestViewPreferences(unittest.TestCase):
    def test_defaults(self):
        prefs = ViewPreferences()
        self.assertEqual(prefs.items_per_page, 25)
        self.assertEqual(prefs.item_detail_per_page, 25)
        self.assertEqual(prefs.view_size, "medium")
        self.assertEqual(prefs.view_mode, "table")

    def test_unsupported_page_size_falls_back(self):
        self.assertEqual(ViewPreferences(items_per_page=7).items_per_page, 25)
        self.assertEqual(ViewPreferences(items_per_page="abc").items_per_page, 25)
        self.assertEqual(ViewPreferences(items_per_page="50").items_per_page, 50)

class TestConfigManager(unittest.TestCase):
    def setUp(self):
        self.test_dir = tempfile.mkdtemp()
        self.config_file = os.path.join(self.test_dir, "config.json")

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def test_missing_file_uses_defaults(self):
        cm = ConfigManager(self.config_file)
        self.assertEqual(cm.get_data_dir(), "data")
        self.assertEqual(cm.get_storage_format(), "json")
        self.assertEqual(cm.get_current_account(), "local")
        self.assertEqual(cm.get_preferences(), ViewPreferences())

    def test_preferences_round_trip(self):
        cm = ConfigManager(self.config_file)
        cm.save_preferences(ViewPreferences(items_per_page=100, view_mode="grid"))

        reloaded = ConfigManager(self.config_file).get_preferences()
        self.assertEqual(reloaded.items_per_page, 100)
        self.assertEqual(reloaded.view_mode, "grid")

    def test_stored_values_override_defaults(self):
        with open(self.config_file, 'w', encoding='utf-8') as f:
            json.dump({"storage_format": "yaml"}, f)
        cm = ConfigManager(self.config_file)
        self.assertEqual(cm.get_storage_format(), "yaml")
        self.assertEqual(cm.get_data_dir(), "data")

    def test_corrupt_file_uses_defaults(self):
        with open(self.config_file, 'w', encoding='utf-8') as f:
            f.write("{not json")
        cm = ConfigManager(self.config_file)
        self.assertEqual(cm.get_current_account(), "local")

    def test_account_switch_is_saved(self):
        cm = ConfigManager(self.config_file)
        cm.set_current_account(None)
        self.assertIsNone(ConfigManager(self.config_file).get_current_account())

class TestAccountSession(unittest.TestCase):
    def test_sign_in_and_out(self):
        s = AccountSession()
        self.assertFalse(s.is_signed_in)
        with self.assertRaises(AuthorizationError):
            _ = s.user_id
        s.sign_in("acct")
        self.assertEqual(s.user_id, "acct")
        s.sign_out()
        self.assertFalse(s.is_signed_in)

if __name__ == '__main__':
    unittest.main()
