"""Unit tests for environment settings and logging setup."""

import logging

import pytest

from bsmodels.config import LOG_FORMAT, Settings, configure_logging, get_settings


class TestSettings:
    def test_defaults_when_env_empty(self):
        settings = Settings.from_env({})
        assert settings == Settings()
        assert settings.mc_paths == 100_000
        assert settings.log_level == "WARNING"

    def test_reads_environment(self):
        settings = Settings.from_env({
            "BSMODELS_LOG_LEVEL": "debug",
            "BSMODELS_MC_PATHS": "5000",
            "BSMODELS_MC_STEPS": "12",
            "BSMODELS_MC_BATCH_SIZE": "250",
            "BSMODELS_MC_WORKERS": "3",
        })
        assert settings == Settings(log_level="DEBUG", mc_paths=5000, mc_steps=12,
                                    mc_batch_size=250, mc_workers=3)

    def test_blank_value_uses_default(self):
        assert Settings.from_env({"BSMODELS_MC_STEPS": " "}).mc_steps == 252

    def test_non_integer_raises(self):
        with pytest.raises(ValueError, match="BSMODELS_MC_PATHS must be an integer"):
            Settings.from_env({"BSMODELS_MC_PATHS": "lots"})

    def test_non_positive_raises(self):
        with pytest.raises(ValueError, match="BSMODELS_MC_WORKERS must be positive"):
            Settings.from_env({"BSMODELS_MC_WORKERS": "0"})

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()


class TestConfigureLogging:
    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        level, handlers = root.level, list(root.handlers)
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_sets_level_and_format(self):
        configure_logging("debug")
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert root.handlers[0].formatter._fmt == LOG_FORMAT
