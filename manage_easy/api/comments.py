from flask import jsonify
from firebase_admin import firestore

from . import comments_bp
from .common import get_payload, get_existing
from manage_easy.firebase_utils import owned_collection
from manage_easy.middleware.auth_middleware import AuthMiddleware, owner_scope
from manage_easy.middleware.error_middleware import ValidationError, AuthorizationError, NotFoundError
from manage_easy.utils.validators import Helpers

# Comments are embedded in the work document's `comments` array


def _work_ref(db, payload):
    entity_type = payload.get("entityType") or "works"
    if entity_type != "works":
        raise ValidationError("Invalid entityType")
    return owned_collection(db, owner_scope(payload), "works").document(payload["entityId"])


def _find_own_comment(comments, comment_id, user_id, action):
    for index, comment in enumerate(comments):
        if comment.get("id") == comment_id:
            if comment.get("authorId") != user_id:
                raise AuthorizationError(f"Not authorized to {action} this comment")
            return index
    raise NotFoundError("Comment not found")


@comments_bp.post("/addComment")
@AuthMiddleware.verify_token
def add_comment():
    db = firestore.client()
    payload = get_payload()
    user_id = AuthMiddleware.get_current_user_id()

    text = (payload.get("text") or "").strip() if isinstance(payload.get("text"), str) else ""
    if not payload.get("entityId") or not text:
        raise ValidationError("entityId and text are required")

    ref = _work_ref(db, payload)
    get_existing(ref, "Work")

    now = Helpers.now_iso()
    comment = {
        "id": Helpers.short_id(),
        "text": text,
        "authorId": user_id,
        "authorName": payload.get("authorName") or "Unknown",
        "createdAt": now,
    }
    ref.update({
        "comments": firestore.ArrayUnion([comment]),
        "updatedAt": now,
    })
    return jsonify(Helpers.build_success_response("Comment added successfully", comment=comment)), 200


@comments_bp.post("/updateComment")
@AuthMiddleware.verify_token
def update_comment():
    db = firestore.client()
    payload = get_payload()
    user_id = AuthMiddleware.get_current_user_id()

    text = payload.get("text")
    if not payload.get("entityId") or not payload.get("commentId") or not isinstance(text, str) or not text.strip():
        raise ValidationError("entityId, commentId, and text are required")

    ref = _work_ref(db, payload)
    comments = list((get_existing(ref, "Work").to_dict() or {}).get("comments") or [])
    index = _find_own_comment(comments, payload["commentId"], user_id, "edit")

    now = Helpers.now_iso()
    comments[index] = {**comments[index], "text": text.strip(), "updatedAt": now}
    ref.update({"comments": comments, "updatedAt": now})
    return jsonify(Helpers.build_success_response("Comment updated successfully", comment=comments[index])), 200


@comments_bp.post("/deleteComment")
@AuthMiddleware.verify_token
def delete_comment():
    db = firestore.client()
    payload = get_payload()
    user_id = AuthMiddleware.get_current_user_id()

    if not payload.get("entityId") or not payload.get("commentId"):
        raise ValidationError("entityId and commentId are required")

    ref = _work_ref(db, payload)
    comments = list((get_existing(ref, "Work").to_dict() or {}).get("comments") or [])
    index = _find_own_comment(comments, payload["commentId"], user_id, "delete")

    comments.pop(index)
    ref.update({"comments": comments, "updatedAt": Helpers.now_iso()})
    return jsonify(Helpers.build_success_response("Comment deleted successfully", commentId=payload["commentId"])), 200
