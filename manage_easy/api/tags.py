from flask import jsonify
from firebase_admin import firestore

from . import tags_bp
from manage_easy.firebase_utils import owned_collection, OWNED_COLLECTIONS
from manage_easy.middleware.auth_middleware import AuthMiddleware, owner_scope
from manage_easy.utils.validators import Helpers

# Tags are plain strings stored on ideas, features and works; there is no tags collection


@tags_bp.get("/listTags")
@AuthMiddleware.verify_token
def list_tags():
    """Get all unique tags on the owner's board"""
    db = firestore.client()
    owner_id = owner_scope()
    tag_set = set()
    for name in OWNED_COLLECTIONS:
        for doc in owned_collection(db, owner_id, name).stream():
            tags = (doc.to_dict() or {}).get("tags", [])
            if isinstance(tags, list):
                tag_set.update(t for t in tags if isinstance(t, str))
    return jsonify(Helpers.build_success_response(tags=sorted(tag_set))), 200
