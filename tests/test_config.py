"""Tests for config loading and merging."""

import json
import tempfile
from pathlib import Path

import pytest

from repodoctor.config import ConfigError, load_config, load_root_config, merge_configs, parse_config
from repodoctor.models import DoctorConfig, PresetName, Severity


def test_default_is_dev():
    with tempfile.TemporaryDirectory() as d:
        config = load_config(d)
    assert config.preset == PresetName.DEV
    assert config.rules == {}


def test_json_config():
    with tempfile.TemporaryDirectory() as d:
        (Path(d) / "doctor.config.json").write_text(
            json.dumps({"preset": "stable", "rules": {"files/changelog": "off"}, "options": {"test/coverage-threshold": {"min": 90}}})
        )
        config = load_config(d)
    assert config.preset == PresetName.STABLE
    assert config.rules == {"files/changelog": Severity.OFF}
    assert config.options["test/coverage-threshold"]["min"] == 90
    assert config.source == "doctor.config.json"


def test_yaml_config():
    with tempfile.TemporaryDirectory() as d:
        (Path(d) / "doctor.config.yaml").write_text("preset: init\nignore:\n  - examples/*\n")
        config = load_config(d)
    assert config.preset == PresetName.INIT
    assert config.ignore == ["examples/*"]


def test_lookup_order():
    """JSON beats YAML; both beat pyproject and package.json."""
    with tempfile.TemporaryDirectory() as d:
        root = Path(d)
        (root / "package.json").write_text(json.dumps({"name": "x", "doctor": {"preset": "init"}}))
        assert load_config(root).source == "package.json"
        (root / "pyproject.toml").write_text('[tool.repodoctor]\npreset = "stable"\n')
        assert load_config(root).preset == PresetName.STABLE
        (root / ".doctorrc.yaml").write_text("preset: init\n")
        assert load_config(root).source == ".doctorrc.yaml"
        (root / "doctor.config.json").write_text(json.dumps({"preset": "dev"}))
        assert load_config(root).source == "doctor.config.json"


def test_malformed_config_falls_back_to_default(caplog):
    """Broken files are logged and ignored, never fatal."""
    with tempfile.TemporaryDirectory() as d:
        (Path(d) / "doctor.config.json").write_text("{not json")
        config = load_config(d)
    assert config == DoctorConfig(preset=PresetName.DEV)
    assert "Ignoring config" in caplog.text


def test_invalid_values_fall_back():
    with tempfile.TemporaryDirectory() as d:
        (Path(d) / "doctor.config.json").write_text(json.dumps({"preset": "strict"}))
        assert load_config(d).preset == PresetName.DEV
        (Path(d) / "doctor.config.json").write_text(json.dumps({"rules": {"files/readme": "fatal"}}))
        assert load_config(d).rules == {}


def test_wrongly_shaped_rules_fall_back():
    with tempfile.TemporaryDirectory() as d:
        path = Path(d) / "doctor.config.json"
        for rules in (["files/readme"], "files/readme"):
            path.write_text(json.dumps({"preset": "stable", "rules": rules}))
            assert load_config(d) == DoctorConfig(preset=PresetName.DEV)


def test_wrongly_shaped_pyproject_tool_falls_back():
    with tempfile.TemporaryDirectory() as d:
        (Path(d) / "pyproject.toml").write_text('tool = "repodoctor"\n')
        assert load_config(d) == DoctorConfig(preset=PresetName.DEV)
        (Path(d) / "pyproject.toml").write_text('[tool]\nrepodoctor = ["stable"]\n')
        assert load_config(d) == DoctorConfig(preset=PresetName.DEV)


def test_non_object_package_json_doctor_falls_back():
    with tempfile.TemporaryDirectory() as d:
        (Path(d) / "package.json").write_text(json.dumps({"name": "x", "doctor": "stable"}))
        assert load_config(d) == DoctorConfig(preset=PresetName.DEV)


def test_parse_config_validation():
    with pytest.raises(ConfigError):
        parse_config(["preset"])
    with pytest.raises(ConfigError):
        parse_config({"options": {"x/y": 3}})
    with pytest.raises(ConfigError):
        parse_config({"ignore": "packages/*"})
    assert parse_config(None) == DoctorConfig()


def test_merge_child_wins():
    """rules and options merge shallowly; preset and ignore are replaced."""
    root = DoctorConfig(
        preset=PresetName.STABLE,
        rules={"a/b": Severity.ERROR, "a/c": Severity.WARN},
        options={"a/b": {"min": 1}},
        ignore=["examples/*"],
    )
    child = DoctorConfig(rules={"a/c": Severity.OFF}, options={"a/b": {"max": 2}}, ignore=["tmp/*"])
    merged = merge_configs(root, child)
    assert merged.preset == PresetName.STABLE
    assert merged.rules == {"a/b": Severity.ERROR, "a/c": Severity.OFF}
    assert merged.options == {"a/b": {"max": 2}}
    assert merged.ignore == ["tmp/*"]
    assert merge_configs(root, DoctorConfig(preset=PresetName.INIT)).ignore == ["examples/*"]


def test_root_config_applies_inside_member_package():
    with tempfile.TemporaryDirectory() as d:
        root = Path(d)
        (root / "package.json").write_text(json.dumps({"name": "root", "workspaces": ["packages/*"]}))
        (root / "doctor.config.json").write_text(json.dumps({"preset": "stable", "rules": {"files/license": "warn"}}))
        pkg = root / "packages" / "a"
        pkg.mkdir(parents=True)
        (pkg / "package.json").write_text(json.dumps({"name": "a"}))
        (pkg / "doctor.config.json").write_text(json.dumps({"rules": {"pkg/exports": "off"}}))
        config = load_root_config(pkg)
    assert config.preset == PresetName.STABLE
    assert config.rules == {"files/license": Severity.WARN, "pkg/exports": Severity.OFF}
