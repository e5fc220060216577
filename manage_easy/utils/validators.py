from datetime import datetime, timezone
from typing import Dict, Any, List, Optional
import secrets
import string

VALID_STATUSES = ['CREATED', 'TODO', 'IN_PROGRESS', 'DONE']
VALID_WORK_TYPES = ['TASK', 'BUG']
MAX_TITLE_LENGTH = 200
MAX_TAG_LENGTH = 32


class Validators:
    """Input validation utilities"""

    @staticmethod
    def validate_status(status: Any) -> bool:
        """Validate lane status"""
        return status in VALID_STATUSES

    @staticmethod
    def validate_work_type(work_type: Any) -> bool:
        """Validate work item type (TASK or BUG)"""
        return work_type in VALID_WORK_TYPES

    @staticmethod
    def validate_title(title: Any) -> bool:
        """Titles must be non-blank strings"""
        return isinstance(title, str) and 0 < len(title.strip()) <= MAX_TITLE_LENGTH

    @staticmethod
    def validate_tags(tags: Any) -> bool:
        """Tags are a list of short non-blank strings"""
        if not isinstance(tags, list):
            return False
        return all(isinstance(t, str) and 0 < len(t.strip()) <= MAX_TAG_LENGTH for t in tags)

    @staticmethod
    def validate_order(order: Any) -> bool:
        # bool is an int subclass
        return isinstance(order, int) and not isinstance(order, bool) and order >= 0

    @staticmethod
    def validate_id_list(ids: Any) -> bool:
        return isinstance(ids, list) and all(isinstance(i, str) and i.strip() for i in ids)


class Helpers:
    """Utility helper functions"""

    @staticmethod
    def now_iso() -> str:
        return datetime.now(timezone.utc).isoformat()

    @staticmethod
    def short_id(length: int = 7) -> str:
        """Random base36 id used for embedded comments"""
        alphabet = string.ascii_lowercase + string.digits
        return ''.join(secrets.choice(alphabet) for _ in range(length))

    @staticmethod
    def clean_tags(tags: Optional[List[str]]) -> List[str]:
        """Strip whitespace and drop duplicates, keeping first-seen order"""
        seen = []
        for tag in tags or []:
            tag = tag.strip()
            if tag and tag not in seen:
                seen.append(tag)
        return seen

    @staticmethod
    def build_error_response(message: str) -> Dict[str, Any]:
        """Build standardized error response"""
        return {
            'success': False,
            'error': message,
        }

    @staticmethod
    def build_success_response(message: str = None, **data) -> Dict[str, Any]:
        """Build standardized success response"""
        response = {'success': True}
        response.update(data)
        if message:
            response['message'] = message
        return response
