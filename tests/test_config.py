"""Environment driven connection settings."""

from __future__ import annotations

import os
import unittest
from unittest import mock

from studydesk import config


class MongoSettingsTestCase(unittest.TestCase):
    def setUp(self) -> None:
        config.clear_cache()
        self.addCleanup(config.clear_cache)

    def _env(self, **values):
        patcher = mock.patch.dict(os.environ, values, clear=False)
        patcher.start()
        self.addCleanup(patcher.stop)
        for name in ("MONGODB_URI", "MONGODB_DB"):
            if name not in values:
                os.environ.pop(name, None)

    def test_database_name_from_uri(self) -> None:
        self._env(MONGODB_URI="mongodb://localhost:27017/studydesk?retryWrites=true")
        self.assertEqual("studydesk", config.get_db_name())

    def test_explicit_database_name_wins(self) -> None:
        self._env(MONGODB_URI="mongodb://localhost:27017/ignored", MONGODB_DB="tracker")
        self.assertEqual("tracker", config.get_db_name())

    def test_missing_uri(self) -> None:
        self._env()
        with self.assertRaises(config.ConfigError):
            config.get_mongo_uri()

    def test_uri_without_database(self) -> None:
        self._env(MONGODB_URI="mongodb+srv://cluster.example.net/")
        with self.assertRaises(config.ConfigError):
            config.get_db_name()

    def test_cache_is_cleared(self) -> None:
        self._env(MONGODB_URI="mongodb://localhost/first")
        self.assertEqual("first", config.get_db_name())
        os.environ["MONGODB_URI"] = "mongodb://localhost/second"
        self.assertEqual("first", config.get_db_name())
        config.clear_cache()
        self.assertEqual("second", config.get_db_name())


if __name__ == "__main__":
    unittest.main()
