"""
Configuration tests.

Settings are read from the environment at import time, so each case
patches the environment and reloads datagrid.config.

Covers:
  - Defaults with no environment
  - Overrides for every setting
  - Invalid values fail at import with RuntimeError
"""

import importlib

import pytest

import datagrid.config

ENV_KEYS = (
    "DATAGRID_PAGE_LIMIT",
    "DATAGRID_SUGGEST_LIMIT",
    "DATAGRID_STRICT_CRITERIA",
    "DATAGRID_MV_DELIMITER",
    "DATAGRID_CSV_DELIMITER",
)


@pytest.fixture
def reload_config(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)

    def _reload(**env):
        for key, value in env.items():
            monkeypatch.setenv(key, value)
        return importlib.reload(datagrid.config).settings

    yield _reload
    monkeypatch.undo()
    importlib.reload(datagrid.config)


class TestSettings:
    def test_defaults(self, reload_config):
        settings = reload_config()
        assert settings.PAGE_LIMIT == 10
        assert settings.SUGGEST_LIMIT == 5
        assert settings.STRICT_CRITERIA is False
        assert settings.MV_DELIMITER == "|"
        assert settings.CSV_DELIMITER == ","

    def test_overrides(self, reload_config):
        settings = reload_config(
            DATAGRID_PAGE_LIMIT="25",
            DATAGRID_SUGGEST_LIMIT="3",
            DATAGRID_STRICT_CRITERIA="Yes",
            DATAGRID_MV_DELIMITER=";",
            DATAGRID_CSV_DELIMITER="\t",
        )
        assert settings.PAGE_LIMIT == 25
        assert settings.SUGGEST_LIMIT == 3
        assert settings.STRICT_CRITERIA is True
        assert settings.MV_DELIMITER == ";"
        assert settings.CSV_DELIMITER == "\t"

    @pytest.mark.parametrize("env", [
        {"DATAGRID_PAGE_LIMIT": "0"},
        {"DATAGRID_SUGGEST_LIMIT": "-1"},
        {"DATAGRID_MV_DELIMITER": "||"},
        {"DATAGRID_CSV_DELIMITER": ""},
    ])
    def test_invalid(self, reload_config, env):
        with pytest.raises(RuntimeError):
            reload_config(**env)
