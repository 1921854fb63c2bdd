import pytest

from convcheck.config import Configuration, PathExclusion, load_config, merge_configs
from convcheck.errors import InvalidConfiguration
from convcheck.registry import build_default_registry
from convcheck.severity import Severity


def test_load_config_reads_yaml(tmp_path):
    config_path = tmp_path / "convcheck.yaml"
    config_path.write_text(
        """
excluded_paths:
  - "vendor/*"
disabled_rules:
  - naming.receiver-name
severity_overrides:
  naming.getter-prefix: error
exclusions:
  - path: "internal/legacy/*"
    rule: naming.initialism-case
  - path: "gen/*"
        """.strip(),
        encoding="utf-8",
    )

    config = load_config(config_path)

    assert config.excluded_paths == {"vendor/*"}
    assert config.disabled_rules == {"naming.receiver-name"}
    assert config.severity_for("naming.getter-prefix", Severity.WARNING) is Severity.ERROR
    assert config.severity_for("errors.string-format", Severity.WARNING) is Severity.WARNING
    assert config.exclusions == (
        PathExclusion("internal/legacy/*", "naming.initialism-case"),
        PathExclusion("gen/*"),
    )
    config.validate(build_default_registry())


def test_missing_config_file_yields_defaults(tmp_path):
    config = load_config(tmp_path / "absent.yaml")

    assert config.excluded_paths == frozenset()
    assert config.disabled_rules == frozenset()
    assert dict(config.severity_overrides) == {}
    assert config.exclusions == ()


def test_invalid_values_are_reported_together(tmp_path):
    config_path = tmp_path / "convcheck.yaml"
    config_path.write_text(
        "severity_overrides:\n  naming.getter-prefix: fatal\nunknown_key: 1\n",
        encoding="utf-8",
    )

    with pytest.raises(InvalidConfiguration) as excinfo:
        load_config(config_path)

    assert len(excinfo.value.problems) == 2
    assert "unknown configuration keys: unknown_key" in excinfo.value.problems


def test_non_mapping_config_is_invalid(tmp_path):
    config_path = tmp_path / "convcheck.yaml"
    config_path.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(InvalidConfiguration):
        load_config(config_path)


def test_validate_rejects_unknown_rules_and_bad_globs():
    config = Configuration(
        excluded_paths=frozenset({"vendor/[abc"}),
        severity_overrides={"naming.no-such-rule": Severity.ERROR},
        exclusions=(PathExclusion("", "naming.getter-prefix"),),
    )

    with pytest.raises(InvalidConfiguration) as excinfo:
        config.validate(build_default_registry())

    problems = excinfo.value.problems
    assert "malformed glob 'vendor/[abc': unbalanced '['" in problems
    assert "malformed glob '': empty pattern" in problems
    assert "severity override names unknown rule 'naming.no-such-rule'" in problems


def test_merge_configs_last_override_wins():
    first = Configuration(
        excluded_paths=frozenset({"vendor/*"}),
        severity_overrides={"naming.getter-prefix": Severity.ERROR},
    )
    second = Configuration(
        disabled_rules=frozenset({"imports.duplicate"}),
        severity_overrides={"naming.getter-prefix": Severity.INFO},
    )

    merged = merge_configs(first, second)

    assert merged.excluded_paths == {"vendor/*"}
    assert merged.disabled_rules == {"imports.duplicate"}
    assert merged.severity_for("naming.getter-prefix", Severity.WARNING) is Severity.INFO
    assert merge_configs(second, first).severity_for("naming.getter-prefix", Severity.WARNING) is Severity.ERROR
