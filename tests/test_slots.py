from services.availability import generate_slots


def test_generates_24_hourly_slots_in_order():
    slots = generate_slots("2025-06-14", 3500)
    assert len(slots) == 24
    assert slots[0]["start_time"] == "00:00"
    assert slots[0]["end_time"] == "01:00"
    assert slots[-1]["start_time"] == "23:00"
    assert slots[-1]["end_time"] == "24:00"
    starts = [s["start_time"] for s in slots]
    assert starts == sorted(starts)


def test_all_available_at_given_price():
    slots = generate_slots("2025-06-14", 2700)
    assert {s["status"] for s in slots} == {"available"}
    assert {s["price"] for s in slots} == {2700}
    assert {s["date"] for s in slots} == {"2025-06-14"}
    assert slots[18]["time"] == "18:00 - 19:00"


def test_deterministic():
    assert generate_slots("2025-06-14", 1) == generate_slots("2025-06-14", 1)
