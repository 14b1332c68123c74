"""Database access for drivers, clients, categories and orders."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError

from steamtg.models import Category, ClientRequest, Driver, NearestDriver, OrderView

log = logging.getLogger(__name__)

_POINT = "ST_SetSRID(ST_MakePoint(:lon, :lat), 4326)"

_INSERT_DRIVER = text(
    "INSERT INTO drivers (name, iin, photo, location, car_id, phone) "
    f"VALUES (:name, :iin, :photo, {_POINT}, :car_id, :phone)"
)
_SELECT_DRIVERS = text(
    "SELECT id, name, iin, photo, ST_X(location), ST_Y(location), car_id FROM drivers"
)
_NEAREST_DRIVER = text(
    "SELECT id, name, ST_X(location), ST_Y(location), "
    f"ST_Distance(CAST(location AS geography), CAST({_POINT} AS geography)) "
    f"FROM drivers ORDER BY location <-> {_POINT} LIMIT 1"
)
_NEAREST_DRIVER_ID = text(f"SELECT id FROM drivers ORDER BY location <-> {_POINT} LIMIT 1")
_DRIVER_BY_PHONE = text("SELECT id, name FROM drivers WHERE phone = :phone")
_UPSERT_CLIENT = text(
    "INSERT INTO clients (name, phone, plate_number, category_id, location) "
    f"VALUES (:name, :phone, :plate, :category_id, {_POINT}) "
    "ON CONFLICT (phone) DO UPDATE SET "
    "name = EXCLUDED.name, plate_number = EXCLUDED.plate_number, "
    "category_id = EXCLUDED.category_id, location = EXCLUDED.location"
)
_INSERT_CLIENT = text(
    "INSERT INTO clients (name, phone, plate_number, category_id, location) "
    f"VALUES (:name, :phone, :plate, :category_id, {_POINT}) RETURNING id"
)
_INSERT_ORDER = text(
    "INSERT INTO orders (client_id, driver_id, status, created_at) "
    "VALUES (:client_id, :driver_id, 'pending', NOW())"
)
_SELECT_CATEGORIES = text("SELECT id, name, image FROM categories")
_SELECT_ORDERS = text(
    "SELECT o.id, c.name, c.phone, ST_Y(c.location), ST_X(c.location), o.status, o.driver_id, "
    "d.name, ST_Y(d.location), ST_X(d.location) "
    "FROM orders o JOIN clients c ON o.client_id = c.id JOIN drivers d ON o.driver_id = d.id"
)
_SELECT_DRIVER_ORDERS = (
    "SELECT o.id, c.name, c.phone, ST_Y(c.location), ST_X(c.location), o.status, "
    "d.id, d.name, ST_Y(d.location), ST_X(d.location) "
    "FROM orders o JOIN clients c ON o.client_id = c.id JOIN drivers d ON o.driver_id = d.id "
    "WHERE o.driver_id = :driver_id"
)
_UPDATE_STATUS = text("UPDATE orders SET status = :status WHERE id = :order_id")

_ORDER_KINDS = (int, str, str, float, float, str, int, str, float, float)


class StoreError(Exception):
    """A database operation failed; the message is fit to show to a client."""


class DriverNotFound(StoreError):
    """No driver matches the given phone."""


def _convert(row: Sequence[Any], kinds: Sequence[type], message: str) -> list[Any]:
    """Convert a row's columns to the given types, failing on NULL."""
    try:
        if any(value is None for value in row):
            raise ValueError("unexpected NULL column")
        return [kind(value) for kind, value in zip(kinds, row, strict=True)]
    except (TypeError, ValueError) as exc:
        log.error("cannot read row %r: %s", row, exc)
        raise StoreError(message or str(exc)) from exc


class Store:
    """Queries and updates the service's tables through an SQLAlchemy engine."""

    def __init__(self, engine: Any) -> None:
        self.engine = engine

    def _fetch(self, statement: Any, params: dict[str, Any], message: str | None) -> list[Any]:
        try:
            with self.engine.begin() as conn:
                return list(conn.execute(statement, params).all())
        except SQLAlchemyError as exc:
            log.error("query failed: %s", exc)
            raise StoreError(message or str(exc)) from exc

    def _execute(self, statement: Any, params: dict[str, Any], message: str) -> None:
        try:
            with self.engine.begin() as conn:
                conn.execute(statement, params)
        except SQLAlchemyError as exc:
            log.error("statement failed: %s", exc)
            raise StoreError(message) from exc

    def create_driver(self, driver: Driver) -> None:
        """Insert a new driver."""
        self._execute(
            _INSERT_DRIVER,
            {
                "name": driver.name,
                "iin": driver.iin,
                "photo": driver.photo,
                "lon": driver.lon,
                "lat": driver.lat,
                "car_id": driver.car_id,
                "phone": driver.phone,
            },
            "Ошибка при создании водителя",
        )

    def list_drivers(self) -> list[Driver]:
        """Return every driver with its position."""
        rows = self._fetch(_SELECT_DRIVERS, {}, None)
        drivers = []
        for row in rows:
            values = _convert(row, (int, str, str, str, float, float, int), "")
            drivers.append(Driver(*values))
        return drivers

    def nearest_driver(self, lon: float, lat: float) -> NearestDriver:
        """Return the driver closest to the point, with the distance in metres."""
        message = "Ошибка при поиске водителя"
        rows = self._fetch(_NEAREST_DRIVER, {"lon": lon, "lat": lat}, message)
        if not rows:
            raise StoreError(message)
        return NearestDriver(*_convert(rows[0], (int, str, float, float, float), message))

    def find_driver_by_phone(self, phone: str) -> Driver:
        """Return the driver with this phone; raise DriverNotFound otherwise."""
        message = "Неверный телефон"
        try:
            rows = self._fetch(_DRIVER_BY_PHONE, {"phone": phone}, message)
        except StoreError as exc:
            raise DriverNotFound(message) from exc
        if not rows:
            raise DriverNotFound(message)
        try:
            driver_id, name = _convert(rows[0], (int, str), message)
        except StoreError as exc:
            raise DriverNotFound(message) from exc
        return Driver(id=driver_id, name=name, phone=phone)

    def upsert_client(self, client: ClientRequest) -> None:
        """Insert a client, or update the one with the same phone."""
        self._execute(
            _UPSERT_CLIENT,
            _client_params(client),
            "Ошибка при создании/обновлении клиента",
        )

    def create_client_with_order(self, client: ClientRequest) -> int:
        """Create a client and a pending order for the nearest driver; return that driver's id."""
        search_message = "Ошибка при поиске водителя"
        rows = self._fetch(_NEAREST_DRIVER_ID, {"lon": client.lon, "lat": client.lat}, search_message)
        if not rows:
            log.error("no driver found near %s, %s", client.lon, client.lat)
            raise StoreError(search_message)
        (driver_id,) = _convert(rows[0], (int,), search_message)

        client_message = "Ошибка при создании клиента"
        try:
            with self.engine.begin() as conn:
                try:
                    created = list(conn.execute(_INSERT_CLIENT, _client_params(client)).all())
                except SQLAlchemyError as exc:
                    log.error("cannot create client: %s", exc)
                    raise StoreError(client_message) from exc
                if not created:
                    raise StoreError(client_message)
                (client_id,) = _convert(created[0], (int,), client_message)
                try:
                    conn.execute(_INSERT_ORDER, {"client_id": client_id, "driver_id": driver_id})
                except SQLAlchemyError as exc:
                    log.error("cannot create order: %s", exc)
                    raise StoreError("Ошибка при создании заказа") from exc
        except SQLAlchemyError as exc:
            log.error("transaction failed: %s", exc)
            raise StoreError("Ошибка сервера") from exc
        return driver_id

    def list_categories(self) -> list[Category]:
        """Return every category."""
        rows = self._fetch(_SELECT_CATEGORIES, {}, "Ошибка при загрузке категорий")
        return [
            Category(*_convert(row, (int, str, str), "Ошибка при парсинге категорий"))
            for row in rows
        ]

    def list_orders(self) -> list[OrderView]:
        """Return every order with its client and driver."""
        rows = self._fetch(_SELECT_ORDERS, {}, "Ошибка при загрузке заказов")
        return _order_views(rows)

    def list_orders_for_driver(self, driver_id: Any, status: str | None) -> list[OrderView]:
        """Return a driver's orders, limited to one status when it is given."""
        log.info("orders for driver %s with status %r", driver_id, status)
        sql = _SELECT_DRIVER_ORDERS
        params: dict[str, Any] = {"driver_id": driver_id}
        if status:
            sql += " AND o.status = :status"
            params["status"] = status
        rows = self._fetch(text(sql), params, "Ошибка при загрузке заказов")
        return _order_views(rows)

    def update_order_status(self, order_id: Any, status: str) -> None:
        """Set the status of an order."""
        self._execute(
            _UPDATE_STATUS,
            {"status": status, "order_id": order_id},
            "Ошибка при обновлении статуса",
        )


def _client_params(client: ClientRequest) -> dict[str, Any]:
    return {
        "name": client.name,
        "phone": client.phone,
        "plate": client.plate,
        "category_id": client.category_id,
        "lon": client.lon,
        "lat": client.lat,
    }


def _order_views(rows: Sequence[Sequence[Any]]) -> list[OrderView]:
    return [OrderView(*_convert(row, _ORDER_KINDS, "Ошибка при парсинге заказов")) for row in rows]


def connect(database_url: str | None) -> Store:
    """Open a store on the database at the given URL."""
    if not database_url:
        raise ValueError("database URL is not set")
    if database_url.startswith("postgres://"):
        database_url = "postgresql://" + database_url[len("postgres://"):]
    return Store(create_engine(database_url))