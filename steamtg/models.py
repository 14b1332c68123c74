"""Records exchanged between the HTTP layer and the database."""

from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass, fields
from typing import Any

_INT64 = range(-(2**63), 2**63)
_MISSING = object()


def _object(data: Any) -> Mapping[str, Any]:
    """Return the JSON object of a request body; ``null`` counts as empty."""
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ValueError("request body must be a JSON object")
    return data


def _read(data: Mapping[str, Any], key: str, kind: type) -> Any:
    """Read one field by case-insensitive key; absent or null gives the zero value."""
    value = _MISSING
    for name, item in data.items():
        if isinstance(name, str) and name.casefold() == key.casefold():
            value = item
    if value is _MISSING or value is None:
        return kind()
    if kind is str and isinstance(value, str):
        return value
    if kind is not str and not isinstance(value, bool):
        if kind is int and isinstance(value, int):
            if value not in _INT64:
                raise ValueError(f"field {key!r} is out of range")
            return value
        if kind is float and isinstance(value, (int, float)):
            return float(value)
    raise ValueError(f"field {key!r} must be of type {kind.__name__}")


def _parse(cls: type, data: Any) -> Any:
    obj = _object(data)
    return cls(**{f.name: _read(obj, f.name, f.type) for f in fields(cls)})


def _serialise(record: Any, omit_empty: Iterable[str] = ()) -> dict[str, Any]:
    """Serialise a dataclass, leaving out empty fields named in ``omit_empty``."""
    omitted = frozenset(omit_empty)
    return {
        key: value
        for key, value in asdict(record).items()
        if value or key not in omitted
    }


@dataclass
class Driver:
    """A driver with a position."""

    id: int = 0
    name: str = ""
    iin: str = ""
    photo: str = ""
    lon: float = 0.0
    lat: float = 0.0
    car_id: int = 0
    phone: str = ""

    def to_dict(self) -> dict[str, Any]:
        return _serialise(self, ("phone",))


@dataclass
class Category:
    """A vehicle category."""

    id: int = 0
    name: str = ""
    image: str = ""

    def to_dict(self) -> dict[str, Any]:
        return _serialise(self)


@dataclass
class Client:
    """A client as stored."""

    id: int = 0
    name: str = ""
    phone: str = ""
    location: str = ""
    plate_number: str = ""
    category_id: int = 0
    lon: float = 0.0
    lat: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return _serialise(self, ("lon", "lat"))


@dataclass
class Order:
    """An order as stored."""

    id: int = 0
    client_id: int = 0
    driver_id: int = 0
    status: str = ""
    created_at: str = ""
    client_name: str = ""
    client_phone: str = ""
    lon: float = 0.0
    lat: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return _serialise(self, ("client_name", "client_phone", "lon", "lat"))


@dataclass
class OrderView:
    """An order joined with its client and driver."""

    id: int = 0
    client_name: str = ""
    client_phone: str = ""
    lat: float = 0.0
    lon: float = 0.0
    status: str = ""
    driver_id: int = 0
    driver_name: str = ""
    driver_lat: float = 0.0
    driver_lon: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return _serialise(self)


@dataclass
class NearestDriver:
    """The driver closest to a point, with the distance in metres."""

    id: int = 0
    name: str = ""
    lon: float = 0.0
    lat: float = 0.0
    distance_m: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return _serialise(self)


@dataclass
class ClientRequest:
    """A client as sent by the front end."""

    name: str = ""
    phone: str = ""
    plate: str = ""
    category_id: int = 0
    lon: float = 0.0
    lat: float = 0.0

    @classmethod
    def from_json(cls, data: Any) -> "ClientRequest":
        """Build a request from decoded JSON; raise ValueError on bad input."""
        return _parse(cls, data)


def parse_driver(data: Any) -> Driver:
    """Build a driver from decoded JSON; raise ValueError on bad input."""
    return _parse(Driver, data)


def parse_point(data: Any) -> tuple[float, float]:
    """Return ``(lon, lat)`` from decoded JSON; raise ValueError on bad input."""
    obj = _object(data)
    return _read(obj, "lon", float), _read(obj, "lat", float)