"""JSON envelope helpers: {"ok": true, ...} / {"ok": false, "error": ...}."""

from __future__ import annotations

from flask import jsonify, request


def ok(data=None, status: int = 200):
    payload = {'ok': True}
    if data:
        payload.update(data)
    return jsonify(payload), status


def fail(error, status: int = 400, **extra):
    payload = {'ok': False, 'error': str(error or 'error')}
    payload.update({k: v for k, v in extra.items() if v is not None})
    return jsonify(payload), status


def form_or_json() -> dict:
    """Request fields from either a JSON body or a (multipart) form."""
    if request.is_json:
        return request.get_json(silent=True) or {}
    return request.form.to_dict()


def parse_bool(value, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {'1', 'true', 'yes', 'on'}
