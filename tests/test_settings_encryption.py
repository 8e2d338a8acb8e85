import os
import sys
import unittest
import keyring
import yaml
sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from config import YamlConfig
from models import BestWorkoutMetric

class DummyKeyring(keyring.backend.KeyringBackend):
    priority = 1
    def __init__(self):
        self.store = {}
    def get_password(self, service, username):
        return self.store.get((service, username))
    def set_password(self, service, username, password):
        self.store[(service, username)] = password
    def delete_password(self, service, username):
        self.store.pop((service, username), None)

class SettingsEncryptionTest(unittest.TestCase):
    def setUp(self) -> None:
        self.keyring = DummyKeyring()
        keyring.set_keyring(self.keyring)
        os.environ['ENCRYPT_SETTINGS'] = '1'
        self.path = 'enc_settings.yaml'
        if os.path.exists(self.path):
            os.remove(self.path)

    def tearDown(self) -> None:
        if os.path.exists(self.path):
            os.remove(self.path)
        os.environ.pop('ENCRYPT_SETTINGS', None)

    def test_encrypt_and_load(self) -> None:
        cfg = YamlConfig(self.path)
        cfg.save({'api_token': 'secret', 'log_level': 'DEBUG'})
        with open(self.path, encoding='utf-8') as f:
            raw = yaml.safe_load(f)
        self.assertNotEqual(raw['api_token'], 'secret')
        self.assertEqual(self.keyring.store[('fitlog', 'api_token')], 'secret')
        data = cfg.load()
        self.assertEqual(data['api_token'], 'secret')
        self.assertEqual(data['log_level'], 'DEBUG')

    def test_missing_secret_is_dropped(self) -> None:
        with open(self.path, 'w', encoding='utf-8') as f:
            yaml.safe_dump({'api_token': True}, f)
        self.assertNotIn('api_token', YamlConfig(self.path).load())


class SettingsTest(unittest.TestCase):
    def setUp(self) -> None:
        self.path = 'plain_settings.yaml'
        if os.path.exists(self.path):
            os.remove(self.path)

    def tearDown(self) -> None:
        if os.path.exists(self.path):
            os.remove(self.path)

    def test_defaults(self) -> None:
        settings = YamlConfig(self.path).settings()
        self.assertEqual(settings.local_db_path, 'fitlog_local.db')
        self.assertEqual(settings.default_metric, BestWorkoutMetric.VOLUME)
        self.assertIsNone(settings.api_token)

    def test_save_and_validate(self) -> None:
        cfg = YamlConfig(self.path)
        cfg.save({'default_metric': '1rm', 'api_port': 9000, 'api_token': None})
        settings = cfg.settings()
        self.assertEqual(settings.default_metric, BestWorkoutMetric.ONE_RM)
        self.assertEqual(settings.api_port, 9000)
        self.assertNotIn('api_token', cfg.load())

    def test_invalid_values(self) -> None:
        cfg = YamlConfig(self.path)
        cfg.save({'log_level': 'LOUD'})
        with self.assertRaises(ValueError):
            cfg.settings()
