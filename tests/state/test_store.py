import json
import stat

import hostsync.state.store as store_mod
from hostsync.host.models import HostState, NetworkInterface
from hostsync.state.store import StateStore


STATE = HostState(
    id=11,
    name="web01",
    domain_id=1,
    interfaces=frozenset({
        NetworkInterface(identifier="eth0", ip="10.0.0.5", id=1),
        NetworkInterface(identifier="ipmi", type="bmc", username="admin", password="pw", id=2),
    }),
    enable_bmc=True,
    bmc_success=False,
)


def test_missing_state_is_none(tmp_path):
    assert StateStore(tmp_path).load("web01") is None


def test_save_and_load(tmp_path):
    store = StateStore(tmp_path / "state")
    path = store.save("web01", STATE)

    assert path == tmp_path / "state" / "web01.json"
    assert store.load("web01") == STATE
    assert stat.S_IMODE(path.stat().st_mode) == 0o600


def test_file_is_keyed_independently_of_name(tmp_path):
    store = StateStore(tmp_path)
    store.save("rack4-slot2", STATE)

    assert store.load("web01") is None
    assert store.load("rack4-slot2").name == "web01"


def test_file_is_private_before_credentials_are_written(tmp_path, monkeypatch):
    store = StateStore(tmp_path)
    tmp = tmp_path / "web01.json.tmp"
    tmp.write_text("stale")
    tmp.chmod(0o644)
    modes = []
    real_dumps = json.dumps

    def dumps(obj, **kw):
        modes.append(stat.S_IMODE(tmp.stat().st_mode))
        return real_dumps(obj, **kw)

    monkeypatch.setattr(store_mod.json, "dumps", dumps)
    store.save("web01", STATE)

    assert modes == [0o600]
    assert not tmp.exists()


def test_remove_and_all(tmp_path):
    store = StateStore(tmp_path)
    store.save("web01", STATE)
    store.save("web02", HostState(id=12, name="web02"))

    assert sorted(store.all()) == ["web01", "web02"]

    store.remove("web01")
    store.remove("web01")
    assert list(store.all()) == ["web02"]
