"""Request/response plumbing shared by the blueprints."""
from typing import Any, Dict, Iterable

from flask import request

from manage_easy.middleware.error_middleware import ValidationError, NotFoundError
from manage_easy.utils.validators import Validators, Helpers


def get_payload() -> Dict[str, Any]:
    payload = request.get_json(force=True, silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


def doc_to_json(doc) -> Dict[str, Any]:
    return {"id": doc.id, **(doc.to_dict() or {})}


def require_id(value, entity: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{entity} ID is required")
    return value.strip()


def get_existing(ref, entity: str):
    snapshot = ref.get()
    if not snapshot.exists:
        raise NotFoundError(f"{entity} not found")
    return snapshot


def collect_updates(payload: Dict[str, Any], fields: Iterable[str]) -> Dict[str, Any]:
    """Pick the updatable fields present in the payload and validate them."""
    updates = {"updatedAt": Helpers.now_iso()}
    for field in fields:
        if field not in payload:
            continue
        value = payload[field]
        if field == "title" and not Validators.validate_title(value):
            raise ValidationError("Title cannot be empty")
        if field == "description" and not isinstance(value, str):
            raise ValidationError("Description must be a string")
        if field == "tags":
            if not Validators.validate_tags(value):
                raise ValidationError("Tags must be a list of non-empty strings")
            value = Helpers.clean_tags(value)
        if field == "status" and not Validators.validate_status(value):
            raise ValidationError("Invalid status")
        if field == "type" and not Validators.validate_work_type(value):
            raise ValidationError("Invalid type")
        if field == "order" and not Validators.validate_order(value):
            raise ValidationError("Order must be a non-negative integer")
        if field == "archived" and not isinstance(value, bool):
            raise ValidationError("archived must be a boolean")
        if field == "title":
            value = value.strip()
        updates[field] = value
    return updates
