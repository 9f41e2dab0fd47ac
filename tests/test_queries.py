import pytest

from hostel.schemas import BuildingFilter, BuildingSort, RoomType
from hostel.services import queries, store
from hostel.services.allocation import book_bed, cancel_booking

from helpers import bed_by_number, room_by_number


@pytest.fixture
def campus(session, hall_a, hall_b):
    """Hall A (3 beds), Hall B (3 beds) and an empty annex."""
    annex = store.create_building(session, name="Annex", description="Overflow rooms")
    session.commit()
    return hall_a, hall_b, annex


def _book(session, building, room_number, bed_number, user_id):
    room = room_by_number(session, building.id, room_number)
    bed = bed_by_number(session, room, bed_number)
    result = book_bed(
        session,
        user_id=user_id,
        user_name=user_id.title(),
        building_id=building.id,
        room_id=room.id,
        bed_id=bed.id,
    )
    assert result.ok
    return result.booking


def _names(buildings):
    return [building.name for building in buildings]


def test_occupancy_rate():
    assert queries.occupancy_rate(4, 1) == 75.0
    assert queries.occupancy_rate(2, 2) == 0.0
    assert queries.occupancy_rate(0, 0) == 0.0
    with pytest.raises(ValueError):
        queries.occupancy_rate(2, 3)


def test_list_buildings_nests_rooms_and_beds(session, campus):
    buildings = queries.list_buildings(session)

    assert _names(buildings) == ["Annex", "Hall A", "Hall B"]
    hall_a = buildings[1]
    assert [room.number for room in hall_a.rooms] == ["101", "102"]
    assert [bed.number for bed in hall_a.rooms[0].beds] == [1, 2]
    assert hall_a.rooms[0].type == RoomType.DOUBLE
    assert hall_a.occupancy_rate == 0.0


def test_filters(session, campus):
    assert _names(queries.list_buildings(session, BuildingFilter(q="library"))) == ["Hall A"]
    assert _names(queries.list_buildings(session, BuildingFilter(q="gym"))) == ["Hall B"]
    assert _names(
        queries.list_buildings(session, BuildingFilter(room_types=[RoomType.TRIPLE]))
    ) == ["Hall B"]
    # Building amenity plus room amenity must both be present.
    assert _names(
        queries.list_buildings(session, BuildingFilter(amenities=["WiFi", "Balcony"]))
    ) == ["Hall A"]
    assert queries.list_buildings(session, BuildingFilter(amenities=["Gym", "Balcony"])) == []
    assert _names(
        queries.list_buildings(session, BuildingFilter(min_available_beds=1))
    ) == ["Hall A", "Hall B"]
    assert _names(
        queries.list_buildings(session, BuildingFilter(max_available_beds=0))
    ) == ["Annex"]


def test_sorting(session, campus):
    hall_a, hall_b, _ = campus
    _book(session, hall_a, "101", 1, "alice")
    _book(session, hall_a, "101", 2, "bob")

    by_availability = queries.list_buildings(
        session, BuildingFilter(sort_by=BuildingSort.AVAILABILITY)
    )
    assert _names(by_availability) == ["Hall B", "Hall A", "Annex"]

    by_occupancy = queries.list_buildings(session, BuildingFilter(sort_by=BuildingSort.OCCUPANCY))
    # Annex and Hall B are both 0% occupied and keep name order.
    assert _names(by_occupancy) == ["Annex", "Hall B", "Hall A"]
    assert by_occupancy[2].occupancy_rate == pytest.approx(200 / 3)


def test_listing_reflects_bookings_despite_cache(session, campus):
    hall_a, _, _ = campus
    before = {b.name: b.available_beds for b in queries.list_buildings(session)}

    booking = _book(session, hall_a, "102", 1, "carol")
    after_booking = {b.name: b.available_beds for b in queries.list_buildings(session)}

    assert cancel_booking(session, user_id="carol", booking_id=booking.id).ok
    after_cancel = {b.name: b.available_beds for b in queries.list_buildings(session)}

    assert after_booking["Hall A"] == before["Hall A"] - 1
    assert after_cancel == before


def test_list_amenities(session, campus):
    assert queries.list_amenities(session) == ["Balcony", "Desk", "Gym", "Laundry", "WiFi"]


def test_views_for_single_building_and_room(session, campus):
    hall_a, hall_b, _ = campus
    room = room_by_number(session, hall_a.id, "101")

    assert queries.get_building_view(session, hall_a.id).name == "Hall A"
    assert queries.get_room_view(session, hall_a.id, room.id).total_beds == 2
    assert queries.get_room_view(session, hall_b.id, room.id) is None


def test_bookings_for_user_newest_first(session, campus):
    hall_a, hall_b, _ = campus
    first = _book(session, hall_a, "101", 1, "dave")
    assert cancel_booking(session, user_id="dave", booking_id=first.id).ok
    second = _book(session, hall_b, "201", 2, "dave")
    _book(session, hall_a, "102", 1, "erin")

    bookings = queries.list_bookings_for_user(session, "dave")

    assert [booking.id for booking in bookings] == [second.id, first.id]
    assert [bed.number for bed in queries.list_beds_for_user(session, "dave")] == [2]


def test_list_all_bookings_filters(session, campus):
    hall_a, hall_b, _ = campus
    cancelled = _book(session, hall_a, "101", 1, "frank")
    assert cancel_booking(session, user_id="frank", booking_id=cancelled.id).ok
    _book(session, hall_a, "101", 2, "grace")
    in_b = _book(session, hall_b, "201", 1, "heidi")

    assert len(queries.list_all_bookings(session)) == 3
    assert [b.id for b in queries.list_all_bookings(session, building_id=hall_b.id)] == [in_b.id]
    assert [b.user_id for b in queries.list_all_bookings(session, status="cancelled")] == ["frank"]
    assert [b.user_id for b in queries.list_all_bookings(session, q="GRACE")] == ["grace"]
    room_101 = room_by_number(session, hall_a.id, "101")
    assert {b.user_id for b in queries.list_all_bookings(session, room_id=room_101.id)} == {
        "frank",
        "grace",
    }
