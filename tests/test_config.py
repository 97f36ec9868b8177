from pathlib import Path

import pytest

from grisp_build.config import DEFAULT_OTP_URL, config_from_mapping, load_config
from grisp_build.errors import ConfigurationError


def test_load_config_reads_grisp_table(tmp_path: Path) -> None:
    (tmp_path / "grisp.toml").write_text(
        '[grisp]\n'
        'otp_version = "21.0"\n'
        'platform = "grisp_base"\n'
        'root = "out"\n'
        '\n'
        '[grisp.toolchain]\n'
        'root = "toolchain"\n',
        encoding="utf-8",
    )

    config = load_config(project_dir=tmp_path)

    project = tmp_path.resolve()
    assert config.otp_version == "21.0"
    assert config.otp_url == DEFAULT_OTP_URL
    assert config.root == project / "out"
    assert config.toolchain.root == project / "toolchain"
    assert config.hardware_app == "grisp"


def test_load_config_defaults_with_toolchain_override(tmp_path: Path) -> None:
    config = load_config(project_dir=tmp_path, toolchain_root="/opt/grisp/tc")

    assert config.toolchain.root == Path("/opt/grisp/tc")
    assert config.root == tmp_path.resolve() / "_grisp"
    assert config.otp_version == "19.3.6"
    assert config.platform == "grisp_base"


def test_load_config_requires_explicit_file_to_exist(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        load_config(tmp_path / "missing.toml", toolchain_root="/opt/tc")

    assert excinfo.value.code == "E_CONFIG"


def test_load_config_requires_toolchain_root(tmp_path: Path) -> None:
    (tmp_path / "grisp.toml").write_text('[grisp]\notp_version = "19.3.6"\n', encoding="utf-8")

    with pytest.raises(ConfigurationError) as excinfo:
        load_config(project_dir=tmp_path)

    assert excinfo.value.hint is not None
    assert "--toolchain" in excinfo.value.hint


def test_load_config_rejects_invalid_toml(tmp_path: Path) -> None:
    (tmp_path / "grisp.toml").write_text("[grisp\n", encoding="utf-8")

    with pytest.raises(ConfigurationError) as excinfo:
        load_config(project_dir=tmp_path)

    assert "not valid TOML" in str(excinfo.value)


def test_config_rejects_non_string_values(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        config_from_mapping({"toolchain": {"root": "/tc"}, "otp_version": 19}, project_dir=tmp_path)


def test_config_rejects_non_table_toolchain(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        config_from_mapping({"toolchain": "/tc"}, project_dir=tmp_path)
