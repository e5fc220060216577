import logging
from flask import request, jsonify
from firebase_admin import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from . import features_bp
from .common import get_payload, doc_to_json, require_id, get_existing, collect_updates
from manage_easy.firebase_utils import owned_collection
from manage_easy.middleware.auth_middleware import AuthMiddleware, owner_scope
from manage_easy.middleware.error_middleware import ValidationError
from manage_easy.utils.validators import Validators, Helpers

logger = logging.getLogger(__name__)


@features_bp.post("/createFeature")
@AuthMiddleware.verify_token
def create_feature():
    db = firestore.client()
    payload = get_payload()
    user_id = AuthMiddleware.get_current_user_id()
    owner_id = owner_scope(payload)

    idea_id = payload.get("ideaId")
    title = payload.get("title")
    if not idea_id or not Validators.validate_title(title):
        raise ValidationError("Idea ID and title are required")
    tags = payload.get("tags") or []
    if not Validators.validate_tags(tags):
        raise ValidationError("Tags must be a list of non-empty strings")

    idea_ref = owned_collection(db, owner_id, "ideas").document(idea_id)
    get_existing(idea_ref, "Idea")

    now = Helpers.now_iso()
    ref = owned_collection(db, owner_id, "features").document()
    ref.set({
        "ideaId": idea_id,
        "title": title.strip(),
        "description": payload.get("description") or "",
        "tags": Helpers.clean_tags(tags),
        "status": "CREATED",
        "archived": False,
        "workIds": [],
        "createdBy": user_id,
        "createdAt": now,
        "updatedAt": now,
    })
    idea_ref.update({
        "featureIds": firestore.ArrayUnion([ref.id]),
        "updatedAt": now,
    })
    logger.info(f"Feature {ref.id} created under idea {idea_id}")
    return jsonify(Helpers.build_success_response("Feature created successfully", id=ref.id)), 201


@features_bp.get("/listFeatures")
@AuthMiddleware.verify_token
def list_features():
    db = firestore.client()
    query = owned_collection(db, owner_scope(), "features").where(
        filter=FieldFilter("archived", "==", False)
    )

    idea_id = (request.args.get("ideaId") or "").strip()
    if idea_id:
        query = query.where(filter=FieldFilter("ideaId", "==", idea_id))
    tag = (request.args.get("tag") or "").strip()
    if tag:
        query = query.where(filter=FieldFilter("tags", "array_contains", tag))

    docs = query.order_by("createdAt", direction=firestore.Query.DESCENDING).stream()
    features = [doc_to_json(d) for d in docs]
    return jsonify(Helpers.build_success_response(features=features)), 200


@features_bp.get("/getFeature")
@AuthMiddleware.verify_token
def get_feature():
    db = firestore.client()
    feature_id = require_id(request.args.get("id"), "Feature")
    snapshot = get_existing(owned_collection(db, owner_scope(), "features").document(feature_id), "Feature")
    return jsonify(Helpers.build_success_response(feature=doc_to_json(snapshot))), 200


@features_bp.post("/updateFeature")
@AuthMiddleware.verify_token
def update_feature():
    db = firestore.client()
    payload = get_payload()
    feature_id = require_id(payload.get("id"), "Feature")

    updates = collect_updates(payload, ("title", "description", "tags", "status", "archived"))
    ref = owned_collection(db, owner_scope(payload), "features").document(feature_id)
    get_existing(ref, "Feature")
    ref.update(updates)
    return jsonify(Helpers.build_success_response("Feature updated successfully")), 200


@features_bp.post("/deleteFeature")
@AuthMiddleware.verify_token
def delete_feature():
    db = firestore.client()
    payload = get_payload()
    owner_id = owner_scope(payload)
    feature_id = require_id(payload.get("id"), "Feature")

    ref = owned_collection(db, owner_id, "features").document(feature_id)
    snapshot = get_existing(ref, "Feature")
    idea_id = (snapshot.to_dict() or {}).get("ideaId")

    ref.delete()

    if idea_id:
        idea_ref = owned_collection(db, owner_id, "ideas").document(idea_id)
        if idea_ref.get().exists:
            idea_ref.update({
                "featureIds": firestore.ArrayRemove([feature_id]),
                "updatedAt": Helpers.now_iso(),
            })
    logger.info(f"Feature {feature_id} deleted")
    return jsonify(Helpers.build_success_response("Feature deleted successfully")), 200
