from pathlib import Path
import textwrap

import pytest
from pydantic import ValidationError

from hostsync.config.loader import load_config

CONFIG = textwrap.dedent("""
    server:
      url: https://foreman.example.test
      username: admin
    hosts:
      - name: web01
        hostgroup_id: 4
        enable_bmc: true
        interfaces:
          - identifier: eth0
            mac: aa:bb:cc:00:00:01
            primary: true
          - identifier: ipmi
            type: bmc
            bmc_provider: IPMI
            username: ADMIN
""")


def test_load_config_minimal_ok(tmp_path: Path, monkeypatch):
    monkeypatch.delenv("HOSTSYNC_SECRETS_FILE", raising=False)
    f = tmp_path / "hosts.yaml"
    f.write_text(CONFIG)

    cfg = load_config(f)

    assert str(cfg.server.url).startswith("https://foreman.example.test")
    assert cfg.settings.settle_delay_seconds == 3.0
    web = cfg.by_name()["web01"]
    assert web.retry_count == 2
    assert web.manage_power_operations is True
    assert web.interfaces[1].type == "bmc"


def test_secrets_next_to_config_are_merged(tmp_path: Path, monkeypatch):
    monkeypatch.delenv("HOSTSYNC_SECRETS_FILE", raising=False)
    (tmp_path / "hosts.yaml").write_text(CONFIG)
    (tmp_path / "secrets.yaml").write_text("server:\n  password: hunter2\n  username: ''\n")

    cfg = load_config(tmp_path / "hosts.yaml")

    assert cfg.server.password == "hunter2"
    # empty values never override
    assert cfg.server.username == "admin"


def test_secrets_env_override(tmp_path: Path, monkeypatch):
    (tmp_path / "hosts.yaml").write_text(CONFIG)
    other = tmp_path / "elsewhere.yaml"
    other.write_text("server:\n  password: from-env-file\n")
    monkeypatch.setenv("HOSTSYNC_SECRETS_FILE", str(other))

    cfg = load_config(tmp_path / "hosts.yaml")

    assert cfg.server.password == "from-env-file"


def test_env_vars_are_expanded(tmp_path: Path, monkeypatch):
    monkeypatch.delenv("HOSTSYNC_SECRETS_FILE", raising=False)
    monkeypatch.setenv("FOREMAN_PASSWORD", "expanded")
    f = tmp_path / "hosts.yaml"
    f.write_text(CONFIG.replace("username: admin", "username: admin\n  password: ${FOREMAN_PASSWORD}"))

    assert load_config(f).server.password == "expanded"


def test_unknown_keys_are_rejected(tmp_path: Path, monkeypatch):
    monkeypatch.delenv("HOSTSYNC_SECRETS_FILE", raising=False)
    f = tmp_path / "hosts.yaml"
    f.write_text(CONFIG.replace("hostgroup_id: 4", "hostgroup: 4"))

    with pytest.raises(ValidationError):
        load_config(f)


def test_retry_count_must_be_positive(tmp_path: Path, monkeypatch):
    monkeypatch.delenv("HOSTSYNC_SECRETS_FILE", raising=False)
    f = tmp_path / "hosts.yaml"
    f.write_text(CONFIG.replace("enable_bmc: true", "enable_bmc: true\n    retry_count: 0"))

    with pytest.raises(ValidationError):
        load_config(f)


def test_credentials_fall_back_to_environment(tmp_path: Path, monkeypatch):
    monkeypatch.delenv("HOSTSYNC_SECRETS_FILE", raising=False)
    monkeypatch.setenv("FOREMAN_CLIENT_USERNAME", "ignored")
    monkeypatch.setenv("FOREMAN_CLIENT_PASSWORD", "from-env")
    f = tmp_path / "hosts.yaml"
    f.write_text(CONFIG)

    cfg = load_config(f)

    # the config wins where it sets a value
    assert cfg.server.username == "admin"
    assert cfg.server.password == "from-env"


def test_duplicate_host_names_are_rejected(tmp_path: Path, monkeypatch):
    monkeypatch.delenv("HOSTSYNC_SECRETS_FILE", raising=False)
    f = tmp_path / "hosts.yaml"
    f.write_text(CONFIG + "  - name: web01\n")

    with pytest.raises(ValueError, match="duplicate host names"):
        load_config(f)


def test_state_key_defaults_to_name_and_must_be_unique(tmp_path: Path, monkeypatch):
    monkeypatch.delenv("HOSTSYNC_SECRETS_FILE", raising=False)
    f = tmp_path / "hosts.yaml"
    f.write_text(CONFIG + "  - name: web02\n")
    assert [h.state_key for h in load_config(f).hosts] == ["web01", "web02"]

    f.write_text(CONFIG + "  - name: web02\n    key: web01\n")
    with pytest.raises(ValueError, match="duplicate host state keys"):
        load_config(f)
