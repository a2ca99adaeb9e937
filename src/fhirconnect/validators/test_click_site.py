"""
Navigation Classifier Tests
===========================
Click-site interpretation over composed YAML, including list-nested keys.
"""
from textwrap import dedent

import pytest

from fhirconnect.errors import ClickSiteError
from fhirconnect.navigation.click_site import (
    NavigationClassifier,
    classify_click_site,
    classify_key_path,
)
from fhirconnect.navigation.relationships import RelationshipCategory
from fhirconnect.navigation.yaml_tree import (
    YamlDocument,
    find_key_value_at,
    key_path,
    logical_parent,
)

MODEL = dedent("""
    grammar: FHIRConnect/v0.0.1
    metadata:
      name: Patient
    spec:
      extends: Base
    mappings:
      - name: first
        with:
          slotArchetype: Other
    archetypes:
      - "Blood"
      - Pressure
    empty:
""").lstrip("\n")


def _site(text, line, column):
    document = YamlDocument(text)
    offset = document.offset_of(line, column)
    return classify_click_site(document.key_value_at(offset), offset)


@pytest.mark.navigation
def test_metadata_name_is_declaration_click():
    site = _site(MODEL, 2, 10)

    assert site.is_navigable
    assert site.key_path == "metadata.name"
    assert site.category is RelationshipCategory.METADATA_NAME
    assert site.symbol == "Patient"
    assert site.requested_categories == {RelationshipCategory.METADATA_NAME}


@pytest.mark.navigation
def test_click_on_key_uses_scalar_value():
    site = _site(MODEL, 2, 3)

    assert site.is_navigable
    assert site.symbol == "Patient"


@pytest.mark.navigation
def test_name_inside_list_item_is_not_metadata_name():
    """
    Given: A name key nested under mappings[0]
    When: Classifying the click
    Then: Ancestry does not match metadata, so it is not navigable
    """
    site = _site(MODEL, 6, 6)

    assert site.key_path == "mappings.name"
    assert not site.is_navigable
    assert site.category is None
    assert site.requested_categories == set()


@pytest.mark.navigation
def test_slot_archetype_under_list_item():
    site = _site(MODEL, 8, 22)

    assert site.is_navigable
    assert site.key_path == "mappings.with.slotArchetype"
    assert site.category is RelationshipCategory.SLOT_ARCHETYPE
    assert site.symbol == "Other"
    assert site.requested_categories == {
        RelationshipCategory.SLOT_ARCHETYPE,
        RelationshipCategory.ARCHETYPES,
        RelationshipCategory.START,
    }


@pytest.mark.navigation
def test_archetypes_item_symbol_is_clicked_item():
    quoted = _site(MODEL, 10, 6)
    plain = _site(MODEL, 11, 6)

    assert quoted.category is RelationshipCategory.ARCHETYPES
    assert quoted.symbol == "Blood"
    assert plain.symbol == "Pressure"


@pytest.mark.navigation
def test_extends_click_requests_declaration_search():
    site = _site(MODEL, 4, 12)

    assert site.category is RelationshipCategory.EXTENDS
    assert RelationshipCategory.EXTENDS in site.requested_categories
    assert RelationshipCategory.METADATA_NAME not in site.requested_categories


@pytest.mark.navigation
def test_key_without_value_is_not_navigable():
    text = "extends:\n"
    site = _site(text, 0, 2)

    assert site.key == "extends"
    assert not site.is_navigable


@pytest.mark.navigation
def test_metadata_name_through_sequence_item():
    """
    Given: metadata holding a list of mappings with a name key
    When: Ascending from name
    Then: The sequence item hop reaches metadata and the path matches
    """
    text = "metadata:\n  - name: Patient\n"
    kv = find_key_value_at(text, 1, 12)

    assert kv.key == "name"
    assert logical_parent(kv).key == "metadata"
    assert key_path(kv) == "metadata.name"
    assert NavigationClassifier().is_navigable(kv)


@pytest.mark.navigation
def test_metadata_name_under_list_nested_metadata():
    text = "models:\n  - metadata:\n      name: Patient\n"
    site = _site(text, 2, 13)

    assert site.key_path == "models.metadata.name"
    assert site.category is RelationshipCategory.METADATA_NAME


@pytest.mark.navigation
def test_top_level_name_without_parent_is_not_navigable():
    assert not _site("name: Patient\n", 0, 8).is_navigable


@pytest.mark.navigation
def test_custom_navigable_paths():
    text = "spec:\n  version: R4\n"
    kv = find_key_value_at(text, 1, 12)

    assert not NavigationClassifier().is_navigable(kv)
    assert NavigationClassifier({"spec.version"}).match(kv) == "spec.version"


@pytest.mark.navigation
def test_click_outside_any_key():
    site = classify_click_site(None)

    assert not site.is_navigable
    assert site.key_path == ""


@pytest.mark.navigation
def test_unparsable_yaml_raises_click_site_error():
    with pytest.raises(ClickSiteError):
        YamlDocument("a: [1, 2\nb: }\n")


@pytest.mark.navigation
@pytest.mark.parametrize("path,expected", [
    ("metadata.name", (True, RelationshipCategory.METADATA_NAME)),
    ("models.metadata.name", (True, RelationshipCategory.METADATA_NAME)),
    ("mappings.with.slotArchetype", (True, RelationshipCategory.SLOT_ARCHETYPE)),
    ("archetypes", (True, RelationshipCategory.ARCHETYPES)),
    ("mappings.name", (False, None)),
    ("name", (False, None)),
    ("spec.system", (False, None)),
])
def test_classify_key_path(path, expected):
    assert classify_key_path(path) == expected
