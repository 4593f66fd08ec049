from hostsync.host.interfaces import (
    adopt_computed,
    outgoing_interfaces,
    removed_interfaces,
    restore_credentials,
)
from hostsync.host.models import NetworkInterface


# --------- Helpers ----------

def nic(identifier, ip="", mac="", **kw):
    return NetworkInterface(identifier=identifier, ip=ip, mac=mac, **kw)


ETH0 = nic("eth0", ip="10.0.0.5", mac="aa:bb:cc:00:00:01", primary=True, managed=True)
ETH1 = nic("eth1", ip="10.0.1.5", mac="aa:bb:cc:00:00:02", managed=True)
BMC = nic("ipmi", ip="10.0.9.5", mac="aa:bb:cc:00:00:09", type="bmc", provider="IPMI",
          username="admin", password="s3cret")


# --------- Set difference ----------

def test_destroy_flag_does_not_affect_identity():
    assert ETH0 == ETH0.tagged_for_removal()
    assert hash(ETH0) == hash(ETH0.tagged_for_removal())
    assert len({ETH0, ETH0.tagged_for_removal()}) == 1


def test_removed_is_old_minus_new():
    assert removed_interfaces([ETH0, ETH1], [ETH0]) == {ETH1}
    assert removed_interfaces([ETH0], [ETH0, ETH1]) == set()
    assert removed_interfaces([], [ETH0]) == set()
    assert removed_interfaces([ETH0, ETH1], []) == {ETH0, ETH1}


def test_identical_collections_remove_nothing():
    out = outgoing_interfaces([ETH0, ETH1], [ETH1, ETH0])
    assert removed_interfaces([ETH0, ETH1], [ETH1, ETH0]) == set()
    assert [n.destroy for n in out] == [False, False]
    assert out == [ETH1, ETH0]


def test_changed_ip_is_remove_plus_add():
    moved = nic("eth0", ip="10.0.0.6", mac=ETH0.mac, primary=True, managed=True)
    out = outgoing_interfaces([ETH0], [moved])

    assert len(out) == 2
    assert out[0] == moved and out[0].destroy is False
    assert out[1] == ETH0 and out[1].destroy is True


def test_outgoing_clears_destroy_on_desired():
    out = outgoing_interfaces([], [ETH0.tagged_for_removal()])
    assert out == [ETH0]
    assert out[0].destroy is False


def test_removed_are_appended_in_stable_order():
    out = outgoing_interfaces([ETH1, ETH0, BMC], [])
    assert [n.identifier for n in out] == ["eth0", "eth1", "ipmi"]
    assert all(n.destroy for n in out)


def test_dropping_bmc_interface_tags_it():
    # host had eth0 + bmc, new desired set only keeps eth0
    out = outgoing_interfaces([ETH0, BMC], [ETH0])

    kept = [n for n in out if not n.destroy]
    dropped = [n for n in out if n.destroy]
    assert kept == [ETH0]
    assert dropped == [BMC]
    assert dropped[0].to_payload()["_destroy"] is True
    assert "_destroy" not in kept[0].to_payload()


# --------- Computed fields ----------

def test_adopt_computed_fills_remote_assigned_fields():
    recorded = nic("eth0", ip="10.0.0.5", mac="aa:bb:cc:00:00:01", id=17, name="web01.example.com",
                   subnet_id=3, managed=True)
    desired = nic("eth0", mac="aa:bb:cc:00:00:01", managed=True)

    out = adopt_computed([recorded], [desired])

    assert out == [recorded]
    assert removed_interfaces([recorded], out) == set()


def test_adopt_computed_keeps_explicit_differences():
    recorded = nic("eth0", ip="10.0.0.5", mac="aa:bb:cc:00:00:01", id=17, managed=True)
    desired = nic("eth0", ip="10.0.0.6", mac="aa:bb:cc:00:00:01", managed=True)

    out = adopt_computed([recorded], [desired])

    assert out == [desired]
    assert removed_interfaces([recorded], out) == {recorded}


def test_adopt_computed_uses_each_record_once():
    recorded = nic("eth0", ip="10.0.0.5", id=17)
    out = adopt_computed([recorded], [nic("eth0"), nic("eth0")])

    assert out[0] == recorded
    assert out[1] == nic("eth0")


# --------- Credentials ----------

def test_restore_credentials_copies_password_back():
    echoed = nic("ipmi", ip=BMC.ip, mac=BMC.mac, type="bmc", provider="IPMI", username="admin", id=44)
    out = restore_credentials([echoed, ETH0], [BMC, ETH0])

    assert out[0].password == "s3cret"
    assert out[0].username == "admin"
    assert out[0].id == 44
    assert out[1] == ETH0


def test_restore_credentials_ignores_unmatched():
    other = nic("ipmi2", mac="ff:ff:ff:ff:ff:ff", type="bmc")
    assert restore_credentials([other], [BMC]) == (other,)


def test_swap_one_interface_for_another():
    i1, i2, i3 = nic("eth0", ip="10.0.0.1"), nic("eth1", ip="10.0.0.2"), nic("eth2", ip="10.0.0.3")

    out = outgoing_interfaces({i1, i2}, [i2, i3])

    assert [(n.identifier, n.destroy) for n in out] == [
        ("eth1", False),
        ("eth2", False),
        ("eth0", True),
    ]
