"""HTTP routes of the service."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any, TypeVar

from flask import Flask, Response, g, jsonify, request

from steamtg.models import ClientRequest, parse_driver, parse_point
from steamtg.store import DriverNotFound, Store, StoreError

log = logging.getLogger(__name__)

DEFAULT_ORIGINS = ("https://test.steamtg.com",)
ALLOW_METHODS = ("GET", "POST", "PUT", "DELETE")
ALLOW_HEADERS = ("Origin", "Content-Type", "Authorization")
_MAX_AGE = 12 * 60 * 60

_BAD_REQUEST = "Неверный формат запроса"

T = TypeVar("T")


class _InvalidRequest(Exception):
    """The request body could not be read."""


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON value {name}")


def _json_body() -> Any:
    """Decode the request body as JSON; raise ValueError when it is not."""
    raw = request.get_data()
    if not raw.strip():
        raise ValueError("empty request body")
    try:
        return json.loads(raw, parse_constant=_reject_constant)
    except UnicodeDecodeError as exc:
        raise ValueError("request body is not UTF-8") from exc


def _parse(parser: Callable[[Any], T]) -> T:
    try:
        return parser(_json_body())
    except ValueError as exc:
        raise _InvalidRequest(str(exc)) from exc


def _string_field(key: str) -> Callable[[Any], str]:
    """Build a parser that reads one string field of a JSON object."""

    def parse(data: Any) -> str:
        if data is None:
            return ""
        if not isinstance(data, Mapping):
            raise ValueError("request body must be a JSON object")
        value: Any = None
        folded = key.casefold()
        for name, item in data.items():
            if isinstance(name, str) and name.casefold() == folded:
                value = item
        if value is None:
            return ""
        if not isinstance(value, str):
            raise ValueError(f"field {key!r} must be a string")
        return value

    return parse


def _listing(items: list[Any]) -> Response:
    """Serialise a list of records; an empty list becomes ``null``."""
    return jsonify([item.to_dict() for item in items] if items else None)


def _install_cors(app: Flask, allowed: frozenset[str]) -> None:
    @app.before_request
    def check_origin() -> Response | None:
        origin = request.headers.get("Origin")
        if not origin:
            return None
        if origin in (f"http://{request.host}", f"https://{request.host}"):
            return None
        if origin not in allowed:
            return app.response_class(status=403)
        g.cors_origin = origin
        if request.method == "OPTIONS":
            g.cors_preflight = True
            return app.response_class(status=204)
        return None

    @app.after_request
    def add_headers(response: Response) -> Response:
        origin = g.get("cors_origin")
        if not origin:
            return response
        headers = response.headers
        headers["Access-Control-Allow-Origin"] = origin
        headers["Access-Control-Allow-Credentials"] = "true"
        if g.get("cors_preflight"):
            headers["Access-Control-Allow-Methods"] = ",".join(ALLOW_METHODS)
            headers["Access-Control-Allow-Headers"] = ",".join(ALLOW_HEADERS)
            headers["Access-Control-Max-Age"] = str(_MAX_AGE)
            for name in ("Origin", "Access-Control-Request-Method", "Access-Control-Request-Headers"):
                headers.add("Vary", name)
        else:
            headers.add("Vary", "Origin")
        return response


def create_app(store: Store, allowed_origins: Iterable[str] | None = None) -> Flask:
    """Build the web application serving the API on top of a store."""
    app = Flask(__name__)
    app.json.ensure_ascii = False
    app.json.sort_keys = False
    app.extensions["store"] = store
    _install_cors(app, frozenset(DEFAULT_ORIGINS if allowed_origins is None else allowed_origins))

    @app.errorhandler(_InvalidRequest)
    def invalid_request(exc: _InvalidRequest) -> tuple[Response, int]:
        log.info("bad request: %s", exc)
        return jsonify(error=_BAD_REQUEST), 400

    @app.errorhandler(DriverNotFound)
    def driver_not_found(exc: DriverNotFound) -> tuple[Response, int]:
        return jsonify(error=str(exc)), 401

    @app.errorhandler(StoreError)
    def store_error(exc: StoreError) -> tuple[Response, int]:
        return jsonify(error=str(exc)), 500

    @app.get("/api/")
    def index() -> Response:
        return jsonify(status="API is running")

    @app.post("/api/drivers")
    def create_driver() -> Response:
        driver = _parse(parse_driver)
        store.create_driver(driver)
        return jsonify(message="Водитель создан")

    @app.get("/api/drivers")
    def list_drivers() -> Response:
        return _listing(store.list_drivers())

    @app.post("/api/drivers/nearest")
    def nearest_driver() -> Response:
        lon, lat = _parse(parse_point)
        log.info("searching for the driver nearest to %s %s", lon, lat)
        return jsonify(store.nearest_driver(lon, lat).to_dict())

    @app.post("/api/login")
    def login() -> Response:
        phone = _parse(_string_field("phone"))
        driver = store.find_driver_by_phone(phone)
        return jsonify(id=driver.id, name=driver.name, phone=phone)

    @app.post("/api/clients")
    def upsert_client() -> Response:
        client = _parse(ClientRequest.from_json)
        store.upsert_client(client)
        return jsonify(message="Клиент создан или обновлён")

    @app.post("/api/clients-with-order")
    def create_client_with_order() -> Response:
        client = _parse(ClientRequest.from_json)
        driver_id = store.create_client_with_order(client)
        return jsonify(message="Клиент и заказ созданы", driver_id=driver_id)

    @app.get("/api/categories")
    def list_categories() -> Response:
        return _listing(store.list_categories())

    @app.get("/api/orders")
    def list_orders() -> Response:
        return _listing(store.list_orders())

    @app.get("/api/orders/driver/<driver_id>")
    def list_orders_for_driver(driver_id: str) -> Response:
        status = request.args.get("status", "")
        return _listing(store.list_orders_for_driver(driver_id, status))

    @app.put("/api/orders/<order_id>/status")
    def update_order_status(order_id: str) -> Response:
        status = _parse(_string_field("status"))
        store.update_order_status(order_id, status)
        return jsonify(message="Статус заказа обновлён")

    return app