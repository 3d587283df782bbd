import random

from flowstore.changelog import NOT_FOUND, Changelist, Changelog
from flowstore.model import RegisterID

KEY1 = RegisterID("", "", "key1")
KEY2 = RegisterID("", "", "key2")


def test_empty_changelist_is_safe():
    clist = Changelist()
    assert clist.search(1) == NOT_FOUND
    clist.add(1)
    assert clist.blocks == [1]


def test_changelist_returns_not_found():
    clist = Changelist()
    assert clist.search(1) == NOT_FOUND
    clist.add(2)
    clist.add(3)
    assert clist.search(1) == NOT_FOUND


def test_changelist_exact_match():
    clist = Changelist()
    clist.add(1)
    clist.add(2)
    assert clist.search(1) == 1
    assert clist.search(2) == 2


def test_changelist_approx_matches():
    clist = Changelist()
    clist.add(0)
    clist.add(2)
    assert clist.search(1) == 0
    assert clist.search(3) == 2
    assert clist.search(100000) == 2


def test_changelist_no_duplicates():
    clist = Changelist()
    clist.add(1)
    assert len(clist) == 1
    clist.add(1)
    assert len(clist) == 1


def test_changelist_sorted_after_every_insertion():
    rng = random.Random(42)
    clist = Changelist()
    for _ in range(100):
        clist.add(rng.getrandbits(64))
        assert clist.blocks == sorted(clist.blocks)


def test_changelist_ignores_not_found_sentinel():
    clist = Changelist()
    clist.add(NOT_FOUND)
    assert len(clist) == 0


def test_changelog_returns_not_found():
    clog = Changelog()
    assert clog.most_recent_change(KEY1, 1) == NOT_FOUND
    assert clog.most_recent_change(KEY2, 2) == NOT_FOUND
    clog.add_change(KEY1, 1)
    assert clog.most_recent_change(KEY2, 1) == NOT_FOUND


def test_changelog_exact_match():
    clog = Changelog()
    clog.add_change(KEY1, 1)
    assert clog.most_recent_change(KEY1, 1) == 1


def test_changelog_approx_match():
    clog = Changelog()
    clog.add_change(KEY1, 1)
    assert clog.most_recent_change(KEY1, 2) == 1


def test_changelog_changelist_missing_is_empty():
    clog = Changelog()
    assert len(clog.changelist(KEY1)) == 0


def test_changelog_set_and_get_changelist():
    clog = Changelog()
    clog.set_changelist(KEY1, Changelist([3, 1, 2]))
    assert clog.changelist(KEY1).blocks == [1, 2, 3]
    assert clog.most_recent_change(KEY1, 5) == 3


def test_changelog_changelist_is_a_copy():
    clog = Changelog()
    clog.add_change(KEY1, 4)
    copy = clog.changelist(KEY1)
    copy.add(10)
    assert clog.changelist(KEY1).blocks == [4]