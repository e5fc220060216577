"""Firebase helpers: credential discovery and user-scoped Firestore paths."""
import os
import json
from typing import Dict, Any

# Collections that live under users/{ownerId}
OWNED_COLLECTIONS = ("ideas", "features", "works")


def _load_json_file(path: str) -> Dict[str, Any]:
    with open(path, 'r') as f:
        return json.load(f)


def get_firebase_credentials() -> Dict[str, Any]:
    """
    Load the service account used by the Admin SDK.

    Lookup order:
    1. FIREBASE_CREDENTIALS_JSON - inline JSON or a path to a JSON file
    2. FIREBASE_CREDENTIALS_PATH - path to a service account file
    3. GOOGLE_APPLICATION_CREDENTIALS - path to a service account file
    4. FIREBASE_PROJECT_ID plus the individual FIREBASE_* key variables

    Raises:
        ValueError: If none of the sources yields credentials
    """
    inline = os.getenv('FIREBASE_CREDENTIALS_JSON')
    if inline:
        try:
            return json.loads(inline)
        except json.JSONDecodeError:
            if os.path.exists(inline):
                return _load_json_file(inline)

    for var in ('FIREBASE_CREDENTIALS_PATH', 'GOOGLE_APPLICATION_CREDENTIALS'):
        path = os.getenv(var)
        if path and os.path.exists(path):
            return _load_json_file(path)

    project_id = os.getenv('FIREBASE_PROJECT_ID')
    if project_id and os.getenv('FIREBASE_PRIVATE_KEY'):
        return {
            "type": "service_account",
            "project_id": project_id,
            "private_key_id": os.getenv('FIREBASE_PRIVATE_KEY_ID'),
            "private_key": os.getenv('FIREBASE_PRIVATE_KEY', '').replace('\\n', '\n'),
            "client_email": os.getenv('FIREBASE_CLIENT_EMAIL'),
            "client_id": os.getenv('FIREBASE_CLIENT_ID'),
            "token_uri": "https://oauth2.googleapis.com/token",
        }

    raise ValueError(
        "Firebase credentials not found. Set FIREBASE_CREDENTIALS_JSON, "
        "FIREBASE_CREDENTIALS_PATH, GOOGLE_APPLICATION_CREDENTIALS, or "
        "FIREBASE_PROJECT_ID with FIREBASE_PRIVATE_KEY and FIREBASE_CLIENT_EMAIL"
    )


def owned_collection(db, owner_id: str, name: str):
    """Return users/{owner_id}/{name}."""
    if name not in OWNED_COLLECTIONS:
        raise ValueError(f"Unknown collection: {name}")
    return db.collection("users").document(owner_id).collection(name)
