from app.dependencies.auth import get_current_user, get_current_user_optional
from app.dependencies.ownership import get_post_or_404, owned_post, owned_user

__all__ = [
    "get_current_user",
    "get_current_user_optional",
    "get_post_or_404",
    "owned_post",
    "owned_user",
]
