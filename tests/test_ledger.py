import pytest

from rideboard.app.services.ledger import Ledger


def test_record_requires_claimed_ride(store, post_ride, alice):
    ride = post_ride(alice)
    with pytest.raises(ValueError):
        Ledger(store).record(ride)


def test_record_requires_payment(rides, store, post_ride, alice, bob):
    ride = rides.claim(post_ride(alice, payment_type="free").id, bob)
    with pytest.raises(ValueError):
        Ledger(store).record(ride)


def test_existing_entry_is_never_overwritten(rides, store, post_ride, alice, bob):
    ride = rides.claim(post_ride(alice, payment_amount=3).id, bob)
    [original] = Ledger(store).list_all()

    ride.payment_amount = 99
    with pytest.raises(ValueError):
        Ledger(store).record(ride)
    assert Ledger(store).list_all() == [original]


def test_one_driver_two_paid_claims_in_same_instant(rides, store, post_ride, alice, bob, carol, monkeypatch):
    from datetime import datetime, timezone
    from rideboard.app.services import rides as rides_module

    frozen = datetime(2030, 1, 1, tzinfo=timezone.utc)
    monkeypatch.setattr(rides_module, "utcnow", lambda: frozen)

    from_alice = post_ride(alice, payment_type="cash", payment_amount=5)
    from_carol = post_ride(carol, payment_type="cash", payment_amount=7)
    rides.claim(from_alice.id, bob)
    rides.claim(from_carol.id, bob)

    transactions = Ledger(store).list_all()
    assert sorted(t.ride_id for t in transactions) == sorted([from_alice.id, from_carol.id])
    assert len({t.id for t in transactions}) == 2
    assert all(t.driver_id == "bob" and t.created_at == frozen for t in transactions)
