"""Tests for Settings validation."""

import unittest

from pydantic import SecretStr, ValidationError

from authapi.core.config import Settings
from authapi.core.security import HasherConfig, TokenConfig
from tests.fakes import make_settings


class TestSettings(unittest.TestCase):
    def test_defaults(self) -> None:
        settings = make_settings()
        self.assertEqual(settings.API_PREFIX, "/api")
        self.assertEqual(settings.JWT_ALGORITHM, "HS256")
        self.assertEqual(Settings.model_fields["JWT_EXPIRE_MINUTES"].default, 1440)
        self.assertEqual(Settings.model_fields["BCRYPT_ROUNDS"].default, 12)

    def test_log_level_is_normalized(self) -> None:
        self.assertEqual(make_settings(LOG_LEVEL="debug").LOG_LEVEL, "DEBUG")
        with self.assertRaises(ValidationError):
            make_settings(LOG_LEVEL="LOUD")

    def test_api_prefix(self) -> None:
        self.assertEqual(make_settings(API_PREFIX="/v1/").API_PREFIX, "/v1")
        with self.assertRaises(ValidationError):
            make_settings(API_PREFIX="api")

    def test_database_url_must_be_postgres(self) -> None:
        url = "postgresql+psycopg2://u:p@db:5432/auth"
        self.assertEqual(make_settings(DATABASE_URL=url).DATABASE_URL, url)
        for bad in ("", "sqlite:///auth.db", "mysql://u:p@db/auth"):
            with self.subTest(url=bad):
                with self.assertRaises(ValidationError):
                    make_settings(DATABASE_URL=bad)

    def test_jwt_settings(self) -> None:
        self.assertEqual(make_settings(JWT_ALGORITHM="hs512").JWT_ALGORITHM, "HS512")
        with self.assertRaises(ValidationError):
            make_settings(JWT_ALGORITHM="RS256")
        with self.assertRaises(ValidationError):
            make_settings(JWT_SECRET=SecretStr("   "))
        for minutes in (0, 10081):
            with self.subTest(minutes=minutes):
                with self.assertRaises(ValidationError):
                    make_settings(JWT_EXPIRE_MINUTES=minutes)

    def test_bcrypt_rounds_range(self) -> None:
        for rounds in (3, 32):
            with self.subTest(rounds=rounds):
                with self.assertRaises(ValidationError):
                    make_settings(BCRYPT_ROUNDS=rounds)

    def test_component_configs_follow_settings(self) -> None:
        settings = make_settings(JWT_EXPIRE_MINUTES=15, BCRYPT_ROUNDS=5, JWT_ALGORITHM="HS384")
        token_config = TokenConfig.from_settings(settings)
        self.assertEqual(token_config.lifetime.total_seconds(), 15 * 60)
        self.assertEqual(token_config.algorithm, "HS384")
        self.assertEqual(HasherConfig.from_settings(settings).rounds, 5)


if __name__ == "__main__":
    unittest.main()
