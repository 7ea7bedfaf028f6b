"""HTTP routes: thin adapters from JSON requests to the blind box services."""

from __future__ import annotations

from typing import Any

from flask import Blueprint, current_app, jsonify, request

from blindbox_api.serializers import (
    entry_to_json,
    listing_to_json,
    parse_checkout_lines,
    parse_int,
)
from blindbox_kernel.exceptions import ValidationError
from blindbox_services.wiring import BlindBoxSystem

api_bp = Blueprint("api_bp", __name__, url_prefix="/api")
health_bp = Blueprint("health_bp", __name__)


def _system() -> BlindBoxSystem:
    return current_app.extensions["blindbox"]


def _json_body() -> dict[str, Any]:
    body = request.get_json(silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


@health_bp.route("/health", methods=["GET"])
def health():
    return jsonify({"status": "ok"})


@api_bp.route("/products", methods=["GET"])
def list_products():
    listings = _system().inventory.list_products()
    return jsonify({"message": "success", "data": [listing_to_json(l) for l in listings]})


@api_bp.route("/config", methods=["GET"])
def get_config():
    return jsonify({"message": "success", "data": _system().probabilities.get().as_dict()})


@api_bp.route("/config", methods=["POST"])
def set_config():
    _system().probabilities.set(_json_body())
    return jsonify({"message": "success"})


@api_bp.route("/inventory/<int:product_id>/stock", methods=["POST"])
def adjust_stock(product_id: int):
    body = _json_body()
    amount = body.get("amount")
    delta = 0 if amount is None else parse_int(amount, "amount")
    _system().inventory.adjust_stock(product_id, body.get("rarity"), delta)
    return jsonify({"message": "success"})


@api_bp.route("/checkout/direct", methods=["POST"])
def checkout_direct():
    lines = parse_checkout_lines(_json_body())
    added = _system().backpack.checkout(lines)
    return jsonify({"message": "success", "data": {"itemsAdded": added}})


@api_bp.route("/backpack", methods=["GET"])
def list_backpack():
    entries = _system().backpack.list_all()
    return jsonify({"message": "success", "data": {"items": [entry_to_json(e) for e in entries]}})


@api_bp.route("/backpack/items/<entry_id>/open", methods=["POST"])
def open_backpack_item(entry_id: str):
    tier = _system().backpack.open(entry_id)
    return jsonify({"message": "success", "rarity": tier.value})
