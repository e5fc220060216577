import logging
from flask import request, jsonify
from firebase_admin import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from . import works_bp
from .common import get_payload, doc_to_json, require_id, get_existing, collect_updates
from manage_easy.board.ordering import sort_works
from manage_easy.firebase_utils import owned_collection
from manage_easy.middleware.auth_middleware import AuthMiddleware, owner_scope
from manage_easy.middleware.error_middleware import ValidationError
from manage_easy.utils.validators import Validators, Helpers

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("title", "description", "tags", "featureId", "order", "archived", "type", "status", "assigneeIds")


def _next_order(works_ref, idea_id, status):
    """Order that places a new item after the last one in its (idea, lane)."""
    last = works_ref.where(filter=FieldFilter("ideaId", "==", idea_id)) \
                    .where(filter=FieldFilter("status", "==", status)) \
                    .order_by("order", direction=firestore.Query.DESCENDING) \
                    .limit(1) \
                    .stream()
    for doc in last:
        order = (doc.to_dict() or {}).get("order")
        if isinstance(order, int):
            return order + 1
    return 0


def _link_feature(db, owner_id, feature_id, work_id, now):
    owned_collection(db, owner_id, "features").document(feature_id).update({
        "workIds": firestore.ArrayUnion([work_id]),
        "updatedAt": now,
    })


def _unlink_feature(db, owner_id, feature_id, work_id, now):
    ref = owned_collection(db, owner_id, "features").document(feature_id)
    if ref.get().exists:
        ref.update({
            "workIds": firestore.ArrayRemove([work_id]),
            "updatedAt": now,
        })


@works_bp.post("/createWork")
@AuthMiddleware.verify_token
def create_work():
    db = firestore.client()
    payload = get_payload()
    user_id = AuthMiddleware.get_current_user_id()
    owner_id = owner_scope(payload)

    title = payload.get("title")
    if not Validators.validate_title(title):
        raise ValidationError("Title is required")

    work_type = payload.get("type") or "TASK"
    if not Validators.validate_work_type(work_type):
        raise ValidationError("Invalid type")
    status = payload.get("status") or "CREATED"
    if not Validators.validate_status(status):
        raise ValidationError("Invalid status")
    tags = payload.get("tags") or []
    if not Validators.validate_tags(tags):
        raise ValidationError("Tags must be a list of non-empty strings")

    idea_id = payload.get("ideaId") or None
    feature_id = payload.get("featureId") or None
    if feature_id:
        feature = get_existing(owned_collection(db, owner_id, "features").document(feature_id), "Feature")
        # A work bound to a feature always belongs to that feature's idea
        idea_id = (feature.to_dict() or {}).get("ideaId") or idea_id
    if not idea_id:
        raise ValidationError("Either ideaId or featureId is required")

    works_ref = owned_collection(db, owner_id, "works")
    order = _next_order(works_ref, idea_id, status)

    now = Helpers.now_iso()
    ref = works_ref.document()
    ref.set({
        "ideaId": idea_id,
        "featureId": feature_id,
        "type": work_type,
        "title": title.strip(),
        "description": payload.get("description") or "",
        "tags": Helpers.clean_tags(tags),
        "status": status,
        "order": order,
        "archived": False,
        "assigneeIds": [],
        "comments": [],
        "createdBy": user_id,
        "creatorName": payload.get("creatorName") or "",
        "createdAt": now,
        "updatedAt": now,
    })

    if feature_id:
        _link_feature(db, owner_id, feature_id, ref.id, now)

    logger.info(f"{work_type} {ref.id} created in {status} at order {order}")
    return jsonify(Helpers.build_success_response("Work created successfully", id=ref.id, order=order)), 201


@works_bp.get("/listWorks")
@AuthMiddleware.verify_token
def list_works():
    db = firestore.client()
    query = owned_collection(db, owner_scope(), "works").where(
        filter=FieldFilter("archived", "==", False)
    )

    for param in ("featureId", "ideaId"):
        value = (request.args.get(param) or "").strip()
        if value:
            query = query.where(filter=FieldFilter(param, "==", value))
    tag = (request.args.get("tag") or "").strip()
    if tag:
        query = query.where(filter=FieldFilter("tags", "array_contains", tag))

    works = sort_works(doc_to_json(d) for d in query.stream())
    return jsonify(Helpers.build_success_response(works=works)), 200


@works_bp.get("/getWork")
@AuthMiddleware.verify_token
def get_work():
    db = firestore.client()
    work_id = require_id(request.args.get("id"), "Work")
    snapshot = get_existing(owned_collection(db, owner_scope(), "works").document(work_id), "Work")
    return jsonify(Helpers.build_success_response(work=doc_to_json(snapshot))), 200


@works_bp.post("/updateWork")
@AuthMiddleware.verify_token
def update_work():
    db = firestore.client()
    payload = get_payload()
    owner_id = owner_scope(payload)
    work_id = require_id(payload.get("id"), "Work")

    updates = collect_updates(payload, UPDATABLE_FIELDS)
    if "assigneeIds" in updates and not Validators.validate_id_list(updates["assigneeIds"]):
        raise ValidationError("assigneeIds must be a list of user IDs")

    if "featureId" in updates:
        feature_id = updates["featureId"]
        if feature_id is not None and (not isinstance(feature_id, str) or not feature_id.strip()):
            raise ValidationError("featureId must be a feature ID or null")
        if feature_id is not None:
            updates["featureId"] = feature_id.strip()

    works_ref = owned_collection(db, owner_id, "works")
    ref = works_ref.document(work_id)
    current = get_existing(ref, "Work").to_dict() or {}

    if updates.get("featureId"):
        feature = get_existing(owned_collection(db, owner_id, "features").document(updates["featureId"]),
                               "Feature")
        idea_id = (feature.to_dict() or {}).get("ideaId") or current.get("ideaId")
        if idea_id != current.get("ideaId"):
            # Moving to another idea appends the item to its lane there
            updates["ideaId"] = idea_id
            if "order" not in updates:
                status = updates.get("status") or current.get("status") or "CREATED"
                updates["order"] = _next_order(works_ref, idea_id, status)

    ref.update(updates)

    if "featureId" in updates and updates["featureId"] != current.get("featureId"):
        if current.get("featureId"):
            _unlink_feature(db, owner_id, current["featureId"], work_id, updates["updatedAt"])
        if updates["featureId"]:
            _link_feature(db, owner_id, updates["featureId"], work_id, updates["updatedAt"])

    return jsonify(Helpers.build_success_response("Work updated successfully")), 200


@works_bp.post("/deleteWork")
@AuthMiddleware.verify_token
def delete_work():
    db = firestore.client()
    payload = get_payload()
    owner_id = owner_scope(payload)
    work_id = require_id(payload.get("id"), "Work")

    ref = owned_collection(db, owner_id, "works").document(work_id)
    feature_id = (get_existing(ref, "Work").to_dict() or {}).get("featureId")
    ref.delete()

    if feature_id:
        _unlink_feature(db, owner_id, feature_id, work_id, Helpers.now_iso())

    logger.info(f"Work {work_id} deleted")
    return jsonify(Helpers.build_success_response("Work deleted successfully")), 200
