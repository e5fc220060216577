import logging
from flask import request, jsonify
from firebase_admin import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from . import ideas_bp
from .common import get_payload, doc_to_json, require_id, get_existing, collect_updates
from manage_easy.firebase_utils import owned_collection
from manage_easy.middleware.auth_middleware import AuthMiddleware, owner_scope
from manage_easy.middleware.error_middleware import ValidationError
from manage_easy.utils.validators import Validators, Helpers

logger = logging.getLogger(__name__)


@ideas_bp.post("/createIdea")
@AuthMiddleware.verify_token
def create_idea():
    db = firestore.client()
    payload = get_payload()
    user_id = AuthMiddleware.get_current_user_id()

    title = payload.get("title")
    if not Validators.validate_title(title):
        raise ValidationError("Title is required")
    tags = payload.get("tags") or []
    if not Validators.validate_tags(tags):
        raise ValidationError("Tags must be a list of non-empty strings")

    now = Helpers.now_iso()
    ref = owned_collection(db, owner_scope(payload), "ideas").document()
    ref.set({
        "title": title.strip(),
        "description": payload.get("description") or "",
        "tags": Helpers.clean_tags(tags),
        "status": "CREATED",
        "featureIds": [],
        "createdBy": user_id,
        "createdAt": now,
        "updatedAt": now,
    })
    logger.info(f"Idea {ref.id} created by {user_id}")
    return jsonify(Helpers.build_success_response("Idea created successfully", id=ref.id)), 201


@ideas_bp.get("/listIdeas")
@AuthMiddleware.verify_token
def list_ideas():
    db = firestore.client()
    query = owned_collection(db, owner_scope(), "ideas")

    tag = (request.args.get("tag") or "").strip()
    if tag:
        query = query.where(filter=FieldFilter("tags", "array_contains", tag))

    docs = query.order_by("createdAt", direction=firestore.Query.DESCENDING).stream()
    ideas = [doc_to_json(d) for d in docs]
    return jsonify(Helpers.build_success_response(ideas=ideas)), 200


@ideas_bp.get("/getIdea")
@AuthMiddleware.verify_token
def get_idea():
    db = firestore.client()
    idea_id = require_id(request.args.get("id"), "Idea")
    snapshot = get_existing(owned_collection(db, owner_scope(), "ideas").document(idea_id), "Idea")
    return jsonify(Helpers.build_success_response(idea=doc_to_json(snapshot))), 200


@ideas_bp.post("/updateIdea")
@AuthMiddleware.verify_token
def update_idea():
    db = firestore.client()
    payload = get_payload()
    idea_id = require_id(payload.get("id"), "Idea")

    updates = collect_updates(payload, ("title", "description", "tags", "status"))
    ref = owned_collection(db, owner_scope(payload), "ideas").document(idea_id)
    get_existing(ref, "Idea")
    ref.update(updates)
    return jsonify(Helpers.build_success_response("Idea updated successfully")), 200


@ideas_bp.post("/deleteIdea")
@AuthMiddleware.verify_token
def delete_idea():
    db = firestore.client()
    payload = get_payload()
    idea_id = require_id(payload.get("id"), "Idea")

    owned_collection(db, owner_scope(payload), "ideas").document(idea_id).delete()
    logger.info(f"Idea {idea_id} deleted")
    return jsonify(Helpers.build_success_response("Idea deleted successfully")), 200
