import pytest

from directory.models import Entry
from directory.tree import DirectoryTree


def _entry(dn, *classes):
    return Entry(location=dn, attributes={"objectClass": list(classes) or ["top"]})


@pytest.fixture
def tree():
    return DirectoryTree.from_entries([
        _entry("dc=example,dc=com", "domain"),
        _entry("ou=People,dc=example,dc=com", "organizationalUnit"),
        _entry("ou=Sales,dc=example,dc=com", "organizationalUnit"),
        _entry("uid=jdoe,ou=People,dc=example,dc=com", "person"),
    ])


def test_find_is_case_insensitive(tree):
    node = tree.find("OU=people,DC=example,DC=com")
    assert node is not None
    assert node.entry.dn == "ou=People,dc=example,dc=com"
    assert tree.find("ou=Missing,dc=example,dc=com") is None


def test_suffix_parents_are_glue(tree):
    glue = tree.find("dc=com")
    assert glue is not None
    assert glue.entry is None
    assert [str(suffix) for suffix in tree.naming_contexts()] == ["dc=example,dc=com"]


def test_location_rebuilt_from_nodes(tree):
    node = tree.find("uid=jdoe,ou=People,dc=example,dc=com")
    assert str(node.location()) == "uid=jdoe,ou=People,dc=example,dc=com"


def test_child_entries_in_insertion_order(tree):
    base = tree.find("dc=example,dc=com")
    assert [entry.dn for entry in base.child_entries()] == [
        "ou=People,dc=example,dc=com",
        "ou=Sales,dc=example,dc=com",
    ]


def test_walk_visits_parents_first(tree):
    assert [entry.dn for entry in tree.entries()] == [
        "dc=example,dc=com",
        "ou=People,dc=example,dc=com",
        "uid=jdoe,ou=People,dc=example,dc=com",
        "ou=Sales,dc=example,dc=com",
    ]


def test_duplicate_entry_rejected(tree):
    with pytest.raises(ValueError):
        tree.add_entry(_entry("ou=people,dc=example,dc=com"))


def test_missing_parent_rejected_without_create(tree):
    with pytest.raises(KeyError):
        tree.add_entry(_entry("uid=x,ou=Nowhere,dc=example,dc=com"), create_parents=False)
    tree.add_entry(_entry("ou=Groups,dc=example,dc=com"), create_parents=False)
    assert tree.find("ou=Groups,dc=example,dc=com").entry is not None
