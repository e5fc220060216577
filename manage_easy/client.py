"""HTTP client for the Manage Easy functions (the Work Item Store)."""
import logging
from typing import Any, Dict, List, Optional

import requests

from manage_easy.config.settings import Settings

logger = logging.getLogger(__name__)


class ApiRequestError(Exception):
    """A call to the functions API failed; message is the server's error text."""

    def __init__(self, message: str, status_code: Optional[int] = None, endpoint: str = None):
        super().__init__(message)
        self.status_code = status_code
        self.endpoint = endpoint


class ApiService:
    def __init__(self, base_url: str = None, token: str = None, timeout: float = None, session=None):
        self.base_url = (base_url or Settings.MANAGE_EASY_API_URL).rstrip("/")
        self.token = token
        self.timeout = timeout or Settings.REQUEST_TIMEOUT
        self.session = session or requests.Session()

    def set_token(self, token: str):
        self.token = token

    def request(self, endpoint: str, method: str = "GET", params: Dict[str, Any] = None,
                body: Dict[str, Any] = None) -> Dict[str, Any]:
        url = f"{self.base_url}/{endpoint}"
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        # Drop unset query parameters
        params = {k: v for k, v in (params or {}).items() if v not in (None, "")}

        try:
            response = self.session.request(method, url, headers=headers, params=params or None,
                                            json=body, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"API Error ({endpoint}): {e}")
            raise ApiRequestError(f"Failed to request {url}: {e}", endpoint=endpoint) from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        if not response.ok:
            message = data.get("error") if isinstance(data, dict) else None
            message = message or f"Request failed with status {response.status_code}"
            logger.error(f"API Error ({endpoint}): {message}")
            raise ApiRequestError(message, status_code=response.status_code, endpoint=endpoint)
        return data

    def _post(self, endpoint: str, body: Dict[str, Any]) -> Dict[str, Any]:
        return self.request(endpoint, method="POST", body={k: v for k, v in body.items() if v is not None})

    # Ideas
    def list_ideas(self, tag: str = None) -> List[Dict[str, Any]]:
        return self.request("listIdeas", params={"tag": tag}).get("ideas", [])

    def get_idea(self, idea_id: str) -> Dict[str, Any]:
        return self.request("getIdea", params={"id": idea_id})["idea"]

    def create_idea(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._post("createIdea", data)

    def update_idea(self, idea_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        return self.request("updateIdea", method="POST", body={"id": idea_id, **updates})

    def delete_idea(self, idea_id: str) -> Dict[str, Any]:
        return self._post("deleteIdea", {"id": idea_id})

    # Features
    def list_features(self, idea_id: str = None, tag: str = None) -> List[Dict[str, Any]]:
        return self.request("listFeatures", params={"ideaId": idea_id, "tag": tag}).get("features", [])

    def get_feature(self, feature_id: str) -> Dict[str, Any]:
        return self.request("getFeature", params={"id": feature_id})["feature"]

    def create_feature(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._post("createFeature", data)

    def update_feature(self, feature_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        return self.request("updateFeature", method="POST", body={"id": feature_id, **updates})

    def delete_feature(self, feature_id: str) -> Dict[str, Any]:
        return self._post("deleteFeature", {"id": feature_id})

    # Works
    def list_works(self, feature_id: str = None, idea_id: str = None, tag: str = None,
                   owner_id: str = None) -> List[Dict[str, Any]]:
        params = {"featureId": feature_id, "ideaId": idea_id, "tag": tag, "ownerId": owner_id}
        return self.request("listWorks", params=params).get("works", [])

    def get_work(self, work_id: str) -> Dict[str, Any]:
        return self.request("getWork", params={"id": work_id})["work"]

    def create_work(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._post("createWork", data)

    def update_work(self, work_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        return self.request("updateWork", method="POST", body={"id": work_id, **updates})

    def delete_work(self, work_id: str, owner_id: str = None) -> Dict[str, Any]:
        return self._post("deleteWork", {"id": work_id, "ownerId": owner_id})

    # Comments
    def add_comment(self, work_id: str, text: str, author_name: str = None) -> Dict[str, Any]:
        return self._post("addComment", {"entityId": work_id, "text": text, "authorName": author_name})

    def update_comment(self, work_id: str, comment_id: str, text: str) -> Dict[str, Any]:
        return self._post("updateComment", {"entityId": work_id, "commentId": comment_id, "text": text})

    def delete_comment(self, work_id: str, comment_id: str) -> Dict[str, Any]:
        return self._post("deleteComment", {"entityId": work_id, "commentId": comment_id})

    # Tags and users
    def list_tags(self) -> List[str]:
        return self.request("listTags").get("tags", [])

    def list_users(self) -> List[Dict[str, Any]]:
        return self.request("listUsers").get("users", [])

    def assign_work(self, work_id: str, assignee_ids: List[str]) -> Dict[str, Any]:
        return self._post("assignWork", {"id": work_id, "assigneeIds": assignee_ids})
