from __future__ import annotations
from functools import wraps
from flask import request, g, current_app
from services.errors import Forbidden


def get_auth_service():
    return current_app.extensions["auth_service"]


def token_required():
    """Authorize the request's access token and expose the caller as g.current_user_id."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            auth = request.headers.get("Authorization")
            g.current_user_id = get_auth_service().authorize(auth)
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def owner_required(param: str = "user_id"):
    """
    Like token_required, and the authenticated user must be the one named by
    the `param` path parameter (403 otherwise).
    """
    def decorator(fn):
        @wraps(fn)
        @token_required()
        def wrapper(*args, **kwargs):
            if kwargs.get(param) != g.current_user_id:
                raise Forbidden()
            return fn(*args, **kwargs)

        return wrapper

    return decorator
