import pytest

from sabalist.exceptions import DocumentNotFound
from sabalist.stores.documents import SERVER_TIMESTAMP, Increment


def test_add_get_update_delete(document_store):
    doc_id = document_store.add("things", {"name": "chair", "count": 1})

    assert document_store.get("things", doc_id) == {"id": doc_id, "name": "chair", "count": 1}

    document_store.update("things", doc_id, {"count": 2, "color": "red"})
    assert document_store.get("things", doc_id)["count"] == 2
    assert document_store.get("things", doc_id)["color"] == "red"
    assert document_store.get("things", doc_id)["name"] == "chair"

    document_store.delete("things", doc_id)
    assert document_store.get("things", doc_id) is None

    # Deleting twice is fine
    document_store.delete("things", doc_id)


def test_update_missing_document_raises(document_store):
    with pytest.raises(DocumentNotFound):
        document_store.update("things", "missing", {"count": 1})


def test_sentinels_are_resolved(document_store):
    doc_id = document_store.add("things", {"views": 0, "createdAt": SERVER_TIMESTAMP})
    document_store.update("things", doc_id, {"views": Increment(1)})
    document_store.update("things", doc_id, {"views": Increment(2), "seenAt": SERVER_TIMESTAMP})

    document = document_store.get("things", doc_id)
    assert document["views"] == 3
    assert isinstance(document["createdAt"], str)
    assert isinstance(document["seenAt"], str)


def test_set_overwrites_at_known_id(document_store):
    document_store.set("users/u1/favorites", "listing-1", {"listingId": "listing-1"})
    document_store.set("users/u1/favorites", "listing-1", {"listingId": "listing-1", "n": 2})

    assert document_store.get("users/u1/favorites", "listing-1")["n"] == 2
    assert len(document_store.query("users/u1/favorites")) == 1
    assert document_store.query("users/u2/favorites") == []


def test_query_filters_order_and_limit(document_store):
    for index, (status, price) in enumerate(
        [("active", 10), ("sold", 20), ("active", 30), ("active", 40)]
    ):
        document_store.add(
            "items",
            {"n": index, "status": status, "price": price, "createdAt": SERVER_TIMESTAMP},
        )

    active = document_store.query(
        "items", where=[("status", "==", "active")], order_by="createdAt", descending=True
    )
    assert [doc["n"] for doc in active] == [3, 2, 0]

    cheap = document_store.query("items", where=[("price", "<=", 20)])
    assert sorted(doc["n"] for doc in cheap) == [0, 1]

    chosen = document_store.query("items", where=[("status", "in", ["sold"])])
    assert [doc["n"] for doc in chosen] == [1]

    limited = document_store.query(
        "items", order_by="createdAt", descending=True, limit=2
    )
    assert [doc["n"] for doc in limited] == [3, 2]


def test_query_rejects_unknown_operator(document_store):
    document_store.add("items", {"n": 1})
    with pytest.raises(ValueError):
        document_store.query("items", where=[("n", "~", 1)])


def test_subscribe_pushes_current_and_changes(document_store):
    pushed = []
    unsubscribe = document_store.subscribe(
        "items", lambda docs: pushed.append(sorted(doc["n"] for doc in docs))
    )
    assert pushed == [[]]

    doc_id = document_store.add("items", {"n": 1})
    document_store.add("other", {"n": 99})
    assert pushed[-1] == [1]

    unsubscribe()
    document_store.delete("items", doc_id)
    assert pushed[-1] == [1]
    assert len(pushed) == 2


def test_in_with_none_matches_missing_fields(document_store):
    document_store.add("items", {"n": 1, "status": "active"})
    document_store.add("items", {"n": 2})
    document_store.add("items", {"n": 3, "status": "sold"})
    document_store.add("items", {"n": 4, "status": None})

    found = document_store.query("items", where=[("status", "in", ["active", None])])

    assert sorted(doc["n"] for doc in found) == [1, 2, 4]
    assert [doc["n"] for doc in document_store.query("items", where=[("status", "in", [None])])] == [2, 4]


def test_numeric_fields_sort_numerically(document_store):
    for price in (50, 1000, 300):
        document_store.add("items", {"price": price})
    document_store.add("items", {"name": "no price"})

    ascending = document_store.query("items", order_by="price")
    assert [doc.get("price") for doc in ascending] == [50, 300, 1000, None]

    top = document_store.query("items", order_by="price", descending=True, limit=2)
    assert [doc["price"] for doc in top] == [1000, 300]
