"""
Tests for owner-scoped locators.

Tests covering:
1. Paths are always rooted at owners/{owner_id}
2. Missing owner or segment yields None, never a partial path
3. Builders are memoised (same input, same object)
4. Structurally invalid input raises ValueError
"""

import pytest

from core.store.locator import (
    TENANTS,
    CollectionRef,
    DocumentRef,
    Filter,
    Query,
    contractor_doc,
    maintenance_doc,
    portfolio_group,
    property_doc,
    scoped_collection,
    scoped_document,
    scoped_query,
    status_query,
    tenant_doc,
    tenants_collection,
)


class TestScopedBuilders:
    """Tests for scoped_collection / scoped_document."""

    def test_collection_path_is_owner_rooted(self):
        ref = scoped_collection("u1", "properties", "p1", "tenants")
        assert ref == CollectionRef("owners/u1/properties/p1/tenants")

    def test_document_path_is_owner_rooted(self):
        ref = scoped_document("u1", "properties", "p1")
        assert ref.path == "owners/u1/properties/p1"
        assert ref.id == "p1"
        assert ref.owner_id == "u1"

    def test_missing_owner_returns_none(self):
        assert scoped_collection(None, "properties") is None
        assert scoped_document("", "properties", "p1") is None

    def test_missing_segment_returns_none(self):
        assert scoped_collection("u1", "properties", None, "tenants") is None
        assert scoped_document("u1", "properties", "") is None

    def test_same_input_returns_identical_object(self):
        first = scoped_collection("u1", "properties", "p1", "tenants")
        second = scoped_collection("u1", "properties", "p1", "tenants")
        assert first is second

    def test_segment_with_slash_rejected(self):
        with pytest.raises(ValueError):
            scoped_document("u1", "properties", "p1/evil")

    def test_wrong_parity_rejected(self):
        with pytest.raises(ValueError):
            scoped_collection("u1", "properties", "p1")
        with pytest.raises(ValueError):
            scoped_document("u1", "properties")

    def test_document_parent_and_subcollection(self):
        ref = scoped_document("u1", "properties", "p1")
        assert ref.parent == CollectionRef("owners/u1/properties")
        assert ref.collection("tenants").path == "owners/u1/properties/p1/tenants"


class TestEntityLocators:
    """Tests for entity helper functions."""

    def test_tenant_locators(self):
        assert tenants_collection("u1", "p1").path == "owners/u1/properties/p1/tenants"
        assert tenant_doc("u1", "p1", "t1").path == "owners/u1/properties/p1/tenants/t1"

    def test_tenant_without_property_is_none(self):
        assert tenants_collection("u1", None) is None
        assert tenant_doc("u1", None, "t1") is None

    def test_contractor_is_directly_under_owner(self):
        assert contractor_doc("u1", "c1").path == "owners/u1/contractors/c1"

    def test_maintenance_log_path(self):
        assert maintenance_doc("u1", "p1", "m1").path == "owners/u1/properties/p1/maintenanceLogs/m1"

    def test_property_doc_none_until_owner_known(self):
        assert property_doc(None, "p1") is None


class TestQueries:
    """Tests for scoped queries."""

    def test_query_memoised(self):
        collection = scoped_collection("u1", "properties")
        first = scoped_query(collection, Filter("status", "==", "Vacant"))
        second = scoped_query(collection, Filter("status", "==", "Vacant"))
        assert first is second

    def test_query_on_missing_collection_is_none(self):
        assert scoped_query(None, Filter("status", "==", "Vacant")) is None

    def test_list_filter_values_become_tuples(self):
        flt = Filter("status", "in", ["Active", "Archived"])
        assert flt.value == ("Active", "Archived")
        hash(flt)

    def test_unsupported_operator_rejected(self):
        with pytest.raises(ValueError):
            Filter("status", "like", "Act%")

    def test_status_query_single_and_many(self):
        collection = scoped_collection("u1", "contractors")
        single = status_query(collection, "Active")
        many = status_query(collection, "Vacant", "Occupied")
        assert single.filters == (Filter("status", "==", "Active"),)
        assert many.filters == (Filter("status", "in", ("Vacant", "Occupied")),)

    def test_group_query_anchor(self):
        anchor = portfolio_group("u1", TENANTS)
        query = status_query(anchor, "Active", group=True)
        assert isinstance(query, Query)
        assert query.group
        assert query.collection.name == "tenants"
        assert query.collection.owner_id == "u1"

    def test_query_builders_return_new_queries(self):
        base = Query(CollectionRef("owners/u1/properties"))
        ordered = base.where("status", "==", "Vacant").ordered("createdDate", descending=True).limited(5)
        assert base.filters == ()
        assert ordered.order_by == "createdDate"
        assert ordered.descending
        assert ordered.limit == 5

    def test_document_ref_is_hashable(self):
        assert len({DocumentRef("owners/u1/properties/p1"), DocumentRef("owners/u1/properties/p1")}) == 1
