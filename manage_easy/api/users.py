from flask import jsonify
from firebase_admin import firestore

from . import users_bp
from .common import get_payload, require_id, get_existing
from manage_easy.firebase_utils import owned_collection
from manage_easy.middleware.auth_middleware import AuthMiddleware, owner_scope
from manage_easy.middleware.error_middleware import ValidationError
from manage_easy.utils.validators import Validators, Helpers


def profile_to_json(doc):
    data = doc.to_dict() or {}
    return {
        "id": doc.id,
        "name": data.get("name") or "",
        "email": data.get("email") or "",
        "photoURL": data.get("photoURL"),
    }


@users_bp.post("/upsertProfile")
@AuthMiddleware.verify_token
def upsert_profile():
    """Create or refresh the caller's profile so others can assign them work"""
    db = firestore.client()
    payload = get_payload()
    user_id = AuthMiddleware.get_current_user_id()

    email = (payload.get("email") or "").strip().lower()
    name = (payload.get("name") or "").strip() or email.split("@")[0]
    if not name:
        raise ValidationError("name or email is required")

    doc = {
        "name": name,
        "email": email,
        "photoURL": payload.get("photoURL"),
        "updatedAt": Helpers.now_iso(),
    }
    # Users listed here may pass this user as ownerId to work on their board
    if "collaboratorIds" in payload:
        if not Validators.validate_id_list(payload["collaboratorIds"]):
            raise ValidationError("collaboratorIds must be a list of user IDs")
        doc["collaboratorIds"] = list(dict.fromkeys(payload["collaboratorIds"]))
    db.collection("users").document(user_id).set(doc, merge=True)
    return jsonify(Helpers.build_success_response(user={"id": user_id, **doc})), 200


@users_bp.get("/listUsers")
@AuthMiddleware.verify_token
def list_users():
    db = firestore.client()
    users = [profile_to_json(d) for d in db.collection("users").stream()]
    users.sort(key=lambda u: (u["name"].lower(), u["id"]))
    return jsonify(Helpers.build_success_response(users=users)), 200


@users_bp.post("/assignWork")
@AuthMiddleware.verify_token
def assign_work():
    db = firestore.client()
    payload = get_payload()
    work_id = require_id(payload.get("id"), "Work")

    assignee_ids = payload.get("assigneeIds")
    if not Validators.validate_id_list(assignee_ids):
        raise ValidationError("assigneeIds must be a list of user IDs")
    assignee_ids = list(dict.fromkeys(assignee_ids))

    unknown = [uid for uid in assignee_ids if not db.collection("users").document(uid).get().exists]
    if unknown:
        raise ValidationError(f"Unknown users: {', '.join(unknown)}")

    ref = owned_collection(db, owner_scope(payload), "works").document(work_id)
    get_existing(ref, "Work")
    ref.update({"assigneeIds": assignee_ids, "updatedAt": Helpers.now_iso()})
    return jsonify(Helpers.build_success_response("Assignees updated", assigneeIds=assignee_ids)), 200
