import pytest

from flowstore.ledger import Delta, MapLedger, RegisterEntry, View
from flowstore.model import RegisterID


def test_delta_set_then_get():
    d = Delta()
    d.set("", "", "foo", b"bar")
    assert d.get("", "", "foo") == b"bar"


def test_delta_get_unwritten_raises():
    with pytest.raises(KeyError):
        Delta().get("", "", "missing")


def test_delta_records_deletion():
    d = Delta()
    d.set("", "", "foo", None)
    assert d.get("", "", "foo") is None
    assert d.data[str(RegisterID("", "", "foo"))] == RegisterEntry(RegisterID("", "", "foo"), None)


def test_register_updates_are_sorted_and_complete():
    d = Delta()
    d.set("", "", "b", b"2")
    d.set("", "", "a", b"1")
    d.set("", "", "c", None)
    updates = d.register_updates()
    assert [rid.key for rid, _ in updates] == ["a", "b", "c"]
    assert [value for _, value in updates] == [b"1", b"2", None]


def test_view_reads_through():
    calls = []

    def read(owner, controller, key):
        calls.append(key)
        return b"stored"

    view = View(read)
    assert view.get("", "", "foo") == b"stored"
    assert calls == ["foo"]


def test_view_writes_shadow_reads():
    view = View(lambda o, c, k: b"stored")
    view.set("", "", "foo", b"local")
    assert view.get("", "", "foo") == b"local"
    assert view.delta().get("", "", "foo") == b"local"


def test_view_deleted_register_reads_none():
    def read(owner, controller, key):
        raise AssertionError("should not be read")

    view = View(read)
    view.set("", "", "foo", None)
    assert view.get("", "", "foo") is None


def test_view_propagates_read_errors():
    def read(owner, controller, key):
        raise OSError("disk")

    with pytest.raises(OSError):
        View(read).get("", "", "foo")


def test_map_ledger_get_touches_register():
    ledger = MapLedger()
    assert ledger.get("", "", "foo") is None
    assert str(RegisterID("", "", "foo")) in ledger.register_touches


def test_map_ledger_set_then_get():
    ledger = MapLedger()
    ledger.set("o", "c", "k", b"v")
    assert ledger.get("o", "c", "k") == b"v"
    assert ledger.registers == {str(RegisterID("o", "c", "k")): b"v"}