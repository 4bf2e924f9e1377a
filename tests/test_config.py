"""Tests for config loading and construction of models from configs.

:copyright: Copyright 2024 by MLL <mll@mll.bio>.
:license: Apache 2.0. See LICENSE for details.
"""

import logging
from types import SimpleNamespace

import pytest

from activax import FirstOrderActivationDynamics, InvalidParameterError
from activax.config import (
    CONFIG_DIR_ENV_VAR_NAME,
    _setup_logging,
    load_config,
    load_config_as_ns,
    load_logging_config,
)
from activax.types import TreeNamespace, namespace_to_dict


@pytest.fixture(autouse=True)
def no_user_config_dir(monkeypatch):
    monkeypatch.delenv(CONFIG_DIR_ENV_VAR_NAME, raising=False)


@pytest.fixture
def user_config_dir(tmp_path, monkeypatch):
    monkeypatch.setenv(CONFIG_DIR_ENV_VAR_NAME, str(tmp_path))
    return tmp_path


class TestLoadConfig:
    """Tests for YAML resource loading and precedence."""

    def test_packaged_activation_defaults(self):
        config = load_config("activation")
        assert config == {
            "tau_activation": 0.010,
            "tau_deactivation": 0.040,
            "min_activation": 0.01,
        }

    def test_as_namespace(self):
        ns = load_config_as_ns("activation")
        assert isinstance(ns, TreeNamespace)
        assert ns.tau_deactivation == 0.040

    def test_missing_config(self):
        with pytest.raises(ValueError, match="not found"):
            load_config("does_not_exist")

    def test_user_config_dir_takes_precedence(self, user_config_dir):
        (user_config_dir / "activation.yml").write_text(
            "tau_activation: 0.02\ntau_deactivation: 0.06\nmin_activation: 0.0\n"
        )
        config = load_config("activation")
        assert config["tau_activation"] == 0.02
        assert config["min_activation"] == 0.0

    def test_user_config_dir_falls_back(self, user_config_dir):
        config = load_config("activation")
        assert config["tau_activation"] == 0.010


class TestLoggingConfig:
    """Tests for log level normalization."""

    def test_levels_are_ints(self):
        cfg = load_logging_config()
        assert cfg.console_level == logging.INFO
        assert cfg.file_level == logging.DEBUG

    def test_level_names_are_case_insensitive(self):
        ns = _setup_logging(TreeNamespace(console_level=" warning ", file_level=10))
        assert ns.console_level == logging.WARNING
        assert ns.file_level == logging.DEBUG

    def test_invalid_level(self):
        with pytest.raises(ValueError, match="console_level"):
            _setup_logging(TreeNamespace(console_level="LOUD"))


class TestFromConfig:
    """Tests for `FirstOrderActivationDynamics.from_config`."""

    def test_default_resource(self):
        model = FirstOrderActivationDynamics.from_config()
        default = FirstOrderActivationDynamics()
        for name in ("tau_activation", "tau_deactivation", "min_activation", "min_activation_ratio"):
            assert getattr(model, name) == getattr(default, name)
        assert model.name == default.name

    def test_mapping_with_overrides(self):
        model = FirstOrderActivationDynamics.from_config(
            {"tau_activation": 0.015, "tau_deactivation": 0.05, "min_activation": 0.0},
            muscle_name="deltoid",
            min_activation=0.02,
            tau_deactivation=None,
        )
        assert model.name == "deltoid_activation"
        assert model.tau_activation == 0.015
        assert model.tau_deactivation == 0.05
        assert model.min_activation == 0.02

    def test_namespace(self):
        ns = SimpleNamespace(tau_activation=0.02, tau_deactivation=0.08, min_activation=0.05)
        model = FirstOrderActivationDynamics.from_config(ns)
        assert model.tau_deactivation == 0.08

    def test_user_config(self, user_config_dir):
        (user_config_dir / "activation.yml").write_text("min_activation: 0.1\n")
        model = FirstOrderActivationDynamics.from_config()
        assert model.min_activation == 0.1
        assert model.tau_activation == 0.010

    def test_unknown_parameter(self):
        with pytest.raises(ValueError, match="Unknown"):
            FirstOrderActivationDynamics.from_config({"tau_act": 0.01})

    def test_invalid_value(self):
        with pytest.raises(InvalidParameterError):
            FirstOrderActivationDynamics.from_config({"min_activation": 1.0})


def test_namespace_round_trip():
    d = {"a": 1, "b": {"c": [1, 2], "d": "x"}}
    ns = TreeNamespace(**{"a": 1}) | d
    assert ns.b.d == "x"
    assert namespace_to_dict(ns) == d
