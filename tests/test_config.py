"""Config module tests.

Tests environment variable parsing.
"""

from __future__ import annotations

import os
from pathlib import Path
from unittest import mock

import pytest

from msc_tasks.config import DEFAULT_CLANG_FORMAT, Config, load_config


class TestRebuild:
    """REBUILD only accepts the exact string "true"."""

    def test_true(self):
        assert load_config({"REBUILD": "true"}).rebuild is True

    @pytest.mark.parametrize("value", ["false", "1", "yes", "True", "TRUE", " true", ""])
    def test_other_values(self, value: str):
        assert load_config({"REBUILD": value}).rebuild is False

    def test_unset(self):
        assert load_config({}).rebuild is False


class TestPaths:
    """libwebrtc paths and TEST_ARGS are passed through untouched."""

    def test_values(self):
        config = load_config({
            "PATH_TO_LIBWEBRTC_SOURCES": "/src/webrtc",
            "PATH_TO_LIBWEBRTC_BINARY": "/src/webrtc/out/obj",
            "TEST_ARGS": "--gtest_repeat=2 ",
        })

        assert config.libwebrtc_sources == "/src/webrtc"
        assert config.libwebrtc_binary == "/src/webrtc/out/obj"
        assert config.test_args == "--gtest_repeat=2 "

    def test_unset_not_validated(self):
        config = load_config({"REBUILD": "true"})

        assert config.rebuild is True
        assert config.libwebrtc_sources is None
        assert config.libwebrtc_binary is None
        assert config.test_args is None


class TestClangFormat:
    def test_default(self):
        assert load_config({}).clang_format == DEFAULT_CLANG_FORMAT

    def test_empty_means_default(self):
        assert load_config({"CLANG_FORMAT": ""}).clang_format == DEFAULT_CLANG_FORMAT

    def test_override(self):
        assert load_config({"CLANG_FORMAT": "clang-format-18"}).clang_format == "clang-format-18"


class TestLogDebug:
    """MSC_LOG_DEBUG parsing."""

    @pytest.mark.parametrize("value", ["true", "True", "1", "yes", "on"])
    def test_truthy_values(self, value: str):
        config = load_config({"MSC_LOG_DEBUG": value})

        assert config.log_debug is True
        assert config.log_file is not None
        assert config.log_file.endswith(".log")

    @pytest.mark.parametrize("value", ["false", "0", "no", "off", ""])
    def test_falsy_values(self, value: str):
        config = load_config({"MSC_LOG_DEBUG": value})

        assert config.log_debug is False
        assert config.log_file is None


class TestLoadConfig:
    def test_reads_os_environ_by_default(self):
        with mock.patch.dict(os.environ, {"REBUILD": "true", "TEST_ARGS": "-a"}, clear=False):
            config = load_config()

        assert config.rebuild is True
        assert config.test_args == "-a"

    def test_root_is_cwd(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.chdir(tmp_path)

        assert load_config({}).root.resolve() == tmp_path.resolve()

    def test_frozen(self):
        config = Config()

        with pytest.raises(AttributeError):
            config.rebuild = True  # type: ignore

    def test_not_affected_by_later_changes(self):
        env = {"TEST_ARGS": "-a"}
        config = load_config(env)
        env["TEST_ARGS"] = "-b"

        assert config.test_args == "-a"
