from rideboard.app.services.history import history


def test_history_for_newcomer_is_empty(store, post_ride, alice):
    post_ride(alice)
    h = history(store, "nobody")
    assert (h.rides_requested, h.rides_provided, h.owed, h.earned) == ([], [], [], [])


def test_history_splits_by_role(rides, store, post_ride, clock, alice, bob, carol):
    paid = post_ride(alice, payment_amount=4)
    free = post_ride(alice, payment_type="free")
    for_alice = post_ride(bob, payment_type="cash", payment_amount=10)
    untouched = post_ride(carol)

    rides.claim(paid.id, bob)
    rides.claim(free.id, bob)
    rides.claim(for_alice.id, alice)

    h = history(store, "alice")
    assert [r.id for r in h.rides_requested] == [free.id, paid.id]
    assert [r.id for r in h.rides_provided] == [for_alice.id]
    assert [t.ride_id for t in h.owed] == [paid.id]
    assert [t.ride_id for t in h.earned] == [for_alice.id]

    h = history(store, "bob")
    assert [r.id for r in h.rides_requested] == [for_alice.id]
    assert [r.id for r in h.rides_provided] == [free.id, paid.id]
    assert [t.ride_id for t in h.earned] == [paid.id]
    assert [t.ride_id for t in h.owed] == [for_alice.id]

    assert untouched.id not in [r.id for r in history(store, "bob").rides_provided]


def test_transactions_sorted_newest_first(rides, store, post_ride, clock, alice, bob):
    first = post_ride(alice, payment_amount=1)
    second = post_ride(alice, payment_amount=2)
    rides.claim(first.id, bob)
    rides.claim(second.id, bob)

    h = history(store, "bob")
    assert [t.ride_id for t in h.earned] == [second.id, first.id]


def test_history_does_not_write(rides, store, post_ride, alice, bob):
    ride = post_ride(alice)
    rides.claim(ride.id, bob)
    before = sorted(store.client.keys("*"))
    history(store, "alice")
    history(store, "bob")
    assert sorted(store.client.keys("*")) == before
