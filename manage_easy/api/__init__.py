from flask import Blueprint

# Routes are named after the HTTP functions the clients call (createIdea, listWorks, ...)
ideas_bp = Blueprint("ideas", __name__)
features_bp = Blueprint("features", __name__)
works_bp = Blueprint("works", __name__)
comments_bp = Blueprint("comments", __name__)
tags_bp = Blueprint("tags", __name__)
users_bp = Blueprint("users", __name__)

# Import modules so routes attach
from . import ideas  # noqa
from . import features  # noqa
from . import works  # noqa
from . import comments  # noqa
from . import tags  # noqa
from . import users  # noqa

__all__ = [
    "ideas_bp",
    "features_bp",
    "works_bp",
    "comments_bp",
    "tags_bp",
    "users_bp",
]
