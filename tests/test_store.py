def test_get_missing_key_returns_none(store):
    assert store.get("ride:missing") is None


def test_set_overwrites_whole_value(store):
    store.set("user:1", {"name": "Alice", "phone": "1"})
    store.set("user:1", {"name": "Alicia"})
    assert store.get("user:1") == {"name": "Alicia"}


def test_delete(store):
    store.set("user:1", {"name": "Alice"})
    store.delete("user:1")
    assert store.get("user:1") is None


def test_get_by_prefix_only_returns_matching_keys(store):
    store.set("ride:1:a", {"id": "ride:1:a"})
    store.set("ride:2:b", {"id": "ride:2:b"})
    store.set("transaction:1:b", {"id": "transaction:1:b"})
    store.set("rider:x", {"id": "rider:x"})

    found = store.get_by_prefix("ride:")
    assert sorted(doc["id"] for doc in found) == ["ride:1:a", "ride:2:b"]


def test_get_by_prefix_empty(store):
    assert store.get_by_prefix("ride:") == []


def test_set_if_absent_only_first_writer_wins(store):
    assert store.set_if_absent("claim-lock:ride:1:a", {"user_id": "bob"}) is True
    assert store.set_if_absent("claim-lock:ride:1:a", {"user_id": "carol"}) is False
    assert store.get("claim-lock:ride:1:a") == {"user_id": "bob"}
