import pytest
from pydantic import ValidationError

from directory.models import (
    ClassPredicate,
    DerivedAttribute,
    Entry,
    Location,
    SearchDescriptor,
    SearchScope,
    ValueSet,
    coerce_entries,
)


def test_location_parent():
    location = Location.from_dn("ou=People,dc=example,dc=com")
    assert location.rdns == ("ou=People", "dc=example", "dc=com")
    assert str(location.parent()) == "dc=example,dc=com"
    assert location.rdn == "ou=People"


def test_location_single_rdn_and_root_have_no_parent():
    assert Location.from_dn("dc=com").parent() is None
    root = Location.from_dn("")
    assert root.is_root
    assert root.parent() is None


def test_location_strips_blanks_and_keeps_escaped_commas():
    location = Location.from_dn("cn=Doe\\, John , ou=People,dc=example")
    assert location.rdns == ("cn=Doe\\, John", "ou=People", "dc=example")
    assert str(location.parent()) == "ou=People,dc=example"


def test_location_comparison_ignores_case():
    location = Location.from_dn("OU=People,DC=Example,DC=com")
    assert location.is_same_as("ou=people, dc=example, dc=com")
    assert not location.is_same_as("ou=Sales,dc=example,dc=com")
    assert location.is_descendant_of("dc=example,dc=com")
    assert not location.is_descendant_of(location)


def test_location_rejects_invalid_rdn():
    with pytest.raises(ValidationError):
        Location.from_dn("People,dc=example")
    with pytest.raises(ValueError):
        Location.from_dn("ou=,dc=example")


def test_location_child():
    assert str(Location.from_dn("dc=example,dc=com").child("ou=People")) == "ou=People,dc=example,dc=com"


def test_entry_from_flat_mapping():
    entry = Entry.model_validate({
        "dn": "ou=People,dc=example,dc=com",
        "objectClass": ["top", "targetClass"],
        "ou": "People",
        "phoneNumber": ["555-1111", 5552222],
    })
    assert entry.dn == "ou=People,dc=example,dc=com"
    assert entry.get_values("ou") == ["People"]
    assert entry.get_values("PHONENUMBER") == ["555-1111", "5552222"]
    assert entry.get_values("mail") == []
    assert entry.has_object_class("TargetClass")
    assert not entry.has_object_class("person")


def test_entry_project_keeps_objectclass():
    entry = Entry(location="ou=People,dc=example", attributes={
        "objectClass": ["top"], "phoneNumber": ["1"], "ou": ["People"],
    })
    assert entry.project(["phonenumber"]) == {"objectClass": ["top"], "phoneNumber": ["1"]}


def test_value_set_keeps_first_occurrence_order():
    values = ValueSet(["b", "a", "b"])
    assert values.add("c")
    assert not values.add("a")
    assert values.as_list() == ["b", "a", "c"]
    assert values == ["b", "a", "c"]
    assert "a" in values
    assert len(values) == 3


def test_value_set_is_case_sensitive():
    assert ValueSet(["Value", "value"]).as_list() == ["Value", "value"]


def test_empty_value_set_is_falsy():
    assert not ValueSet()


def test_derived_attribute_requires_values():
    with pytest.raises(ValidationError):
        DerivedAttribute(name="phoneNumber", values=ValueSet())
    with pytest.raises(ValidationError):
        DerivedAttribute(name="phoneNumber", values=[])


def test_derived_attribute_from_value_set():
    attribute = DerivedAttribute(name="phoneNumber", values=ValueSet(["555-1111", "555-2222"]))
    assert attribute.values == ("555-1111", "555-2222")
    assert DerivedAttribute(name="x", values=["a", "a", "b"]).values == ("a", "b")
    assert str(attribute) == "Attribute(name=phoneNumber, values={555-1111, 555-2222})"


def test_class_predicate_filter():
    predicate = ClassPredicate(class_name="targetClass")
    assert predicate.to_filter() == "(objectclass=targetClass)"
    assert predicate.matches(Entry(location="ou=a,dc=b", attributes={"objectclass": ["TARGETCLASS"]}))


def test_search_descriptor_is_immutable():
    descriptor = SearchDescriptor(
        base="dc=example,dc=com",
        filter=ClassPredicate(class_name="targetClass"),
        attribute="phoneNumber",
    )
    assert descriptor.scope is SearchScope.ONE
    assert descriptor.filter_text == "(objectclass=targetClass)"
    with pytest.raises(ValidationError):
        descriptor.attribute = "mail"


def test_coerce_entries_from_yaml_text():
    entries = coerce_entries("""
entries:
  - dn: dc=example,dc=com
    objectClass: [top, domain]
  - dn: ou=People,dc=example,dc=com
    objectClass: organizationalUnit
""")
    assert [entry.dn for entry in entries] == ["dc=example,dc=com", "ou=People,dc=example,dc=com"]
    assert entries[1].get_values("objectClass") == ["organizationalUnit"]


def test_coerce_entries_from_json_list():
    entries = coerce_entries('[{"dn": "dc=com", "objectClass": ["top"]}]')
    assert entries[0].location.rdns == ("dc=com",)


def test_coerce_entries_rejects_bad_payload():
    with pytest.raises(ValueError):
        coerce_entries([{"dn": "not-a-dn"}])
    with pytest.raises(TypeError):
        coerce_entries(42)
