"""Tests for ssml_flavors.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from ssml_flavors.config import PACKAGED_CAPABILITIES, Settings


class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("SSML_FLAVORS_CAPABILITIES", raising=False)
        monkeypatch.delenv("SSML_FLAVORS_DEFAULT_FLAVOR", raising=False)
        settings = Settings()
        assert settings.capabilities_path == PACKAGED_CAPABILITIES
        assert settings.default_flavor == "generic"

    def test_packaged_table_ships(self) -> None:
        assert PACKAGED_CAPABILITIES.is_file()

    def test_capabilities_from_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        table = tmp_path / "table.yaml"
        monkeypatch.setenv("SSML_FLAVORS_CAPABILITIES", f"  {table}  ")
        assert Settings().capabilities_path == table

    def test_blank_capabilities_falls_back(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SSML_FLAVORS_CAPABILITIES", "   ")
        assert Settings().capabilities_path == PACKAGED_CAPABILITIES

    def test_default_flavor_normalized(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SSML_FLAVORS_DEFAULT_FLAVOR", " Amazon-Polly ")
        assert Settings().default_flavor == "amazon-polly"

    def test_read_at_construction(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SSML_FLAVORS_DEFAULT_FLAVOR", "azure")
        first = Settings()
        monkeypatch.setenv("SSML_FLAVORS_DEFAULT_FLAVOR", "google")
        assert first.default_flavor == "azure"
        assert Settings().default_flavor == "google"

    def test_explicit_values_win(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SSML_FLAVORS_DEFAULT_FLAVOR", "azure")
        assert Settings(default_flavor="songbird").default_flavor == "songbird"
