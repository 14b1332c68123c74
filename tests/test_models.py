import pytest

from steamtg.models import (
    Category,
    Client,
    ClientRequest,
    Driver,
    NearestDriver,
    Order,
    OrderView,
    parse_driver,
    parse_point,
)


def test_parse_driver_reads_all_fields():
    data = {
        "id": 4,
        "name": "Aidar",
        "iin": "iin-test",
        "photo": "photo.png",
        "lon": 76.9,
        "lat": 43.2,
        "car_id": 7,
        "phone": "phone-a",
    }
    assert parse_driver(data) == Driver(4, "Aidar", "iin-test", "photo.png", 76.9, 43.2, 7, "phone-a")


def test_parse_driver_missing_fields_take_zero_values():
    assert parse_driver({"name": "Aidar"}) == Driver(name="Aidar")


def test_parse_driver_null_body_and_null_fields():
    assert parse_driver(None) == Driver()
    assert parse_driver({"name": None, "car_id": None}) == Driver()


def test_keys_match_without_case():
    assert parse_driver({"NAME": "Aidar", "Car_ID": 3}) == Driver(name="Aidar", car_id=3)


def test_unknown_keys_are_ignored():
    assert parse_driver({"colour": "red", "name": "x"}) == Driver(name="x")


@pytest.mark.parametrize("body", [[1, 2], "text", 5])
def test_non_object_body_is_rejected(body):
    with pytest.raises(ValueError):
        parse_driver(body)


@pytest.mark.parametrize(
    "body",
    [
        {"car_id": "7"},
        {"car_id": 1.5},
        {"car_id": True},
        {"car_id": 2**63},
        {"name": 12},
        {"lon": "76.9"},
        {"lat": False},
    ],
)
def test_wrong_types_are_rejected(body):
    with pytest.raises(ValueError):
        parse_driver(body)


def test_integer_is_accepted_for_coordinates():
    lon, lat = parse_point({"lon": 76, "lat": 43})
    assert (lon, lat) == (76.0, 43.0)
    assert isinstance(lon, float)


def test_parse_point_defaults_to_origin():
    assert parse_point({}) == (0.0, 0.0)


def test_parse_point_rejects_non_object():
    with pytest.raises(ValueError):
        parse_point([76.9, 43.2])


def test_client_request_from_json():
    data = {"name": "Dana", "phone": "phone-b", "plate": "AB-TEST", "category_id": 2, "lon": 1.5, "lat": 2.5}
    assert ClientRequest.from_json(data) == ClientRequest("Dana", "phone-b", "AB-TEST", 2, 1.5, 2.5)


def test_client_request_rejects_string_category():
    with pytest.raises(ValueError):
        ClientRequest.from_json({"category_id": "2"})


def test_driver_to_dict_omits_empty_phone():
    result = Driver(1, "Aidar", "iin-test", "p.png", 1.0, 2.0, 3).to_dict()
    assert "phone" not in result
    assert list(result) == ["id", "name", "iin", "photo", "lon", "lat", "car_id"]


def test_driver_to_dict_round_trips_through_parse():
    driver = Driver(1, "Aidar", "iin-test", "p.png", 1.0, 2.0, 3, "phone-a")
    assert parse_driver(driver.to_dict()) == driver


def test_category_to_dict():
    assert Category(2, "Truck", "truck.png").to_dict() == {"id": 2, "name": "Truck", "image": "truck.png"}


def test_client_to_dict_omits_zero_coordinates():
    result = Client(1, "Dana", "phone-b", "POINT", "AB-TEST", 2).to_dict()
    assert "lon" not in result and "lat" not in result
    assert Client(lon=1.5, lat=2.5).to_dict()["lat"] == 2.5


def test_order_to_dict_omits_empty_optional_fields():
    assert Order(1, 2, 3, "pending", "now").to_dict() == {
        "id": 1,
        "client_id": 2,
        "driver_id": 3,
        "status": "pending",
        "created_at": "now",
    }
    full = Order(1, 2, 3, "pending", "now", "Dana", "phone-b", 1.5, 2.5).to_dict()
    assert full["client_name"] == "Dana"
    assert full["lon"] == 1.5


def test_order_view_to_dict_keeps_field_order():
    view = OrderView(1, "Dana", "phone-b", 2.5, 1.5, "pending", 3, "Aidar", 4.5, 3.5)
    result = view.to_dict()
    assert list(result) == [
        "id",
        "client_name",
        "client_phone",
        "lat",
        "lon",
        "status",
        "driver_id",
        "driver_name",
        "driver_lat",
        "driver_lon",
    ]
    assert result["driver_lon"] == 3.5


def test_nearest_driver_to_dict():
    assert NearestDriver(5, "Aidar", 1.5, 2.5, 120.0).to_dict() == {
        "id": 5,
        "name": "Aidar",
        "lon": 1.5,
        "lat": 2.5,
        "distance_m": 120.0,
    }