from __future__ import annotations

import logging

from flask import Blueprint, request, jsonify, g

from models import storage
from models.user import User
from models.schemas.user import UserOutSchema, UserUpdateSchema, ProgressSchema, ProgressOutSchema
from services.errors import Conflict, NotFound
from services.progress import apply_progress
from utils.decorators import get_auth_service, owner_required, token_required
from utils.security import hash_password

logger = logging.getLogger(__name__)

bp = Blueprint("users", __name__)

user_out_schema = UserOutSchema()
user_update_schema = UserUpdateSchema()
progress_schema = ProgressSchema()
progress_out_schema = ProgressOutSchema()


def get_user_or_404(user_id: str) -> User:
    user = storage.get(User, user_id)
    if not user:
        raise NotFound()
    return user


def ensure_unique(field: str, value: str, user_id: str, message: str):
    other = storage.find_by(User, **{field: value})
    if other is not None and other.id != user_id:
        raise Conflict(message)


@bp.get("/me")
@token_required()
def me():
    """
    Get current user info
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    user = get_user_or_404(g.current_user_id)
    return jsonify({"data": user_out_schema.dump(user)}), 200


@bp.put("/update/<user_id>")
@owner_required()
def update_user(user_id: str):
    """
    Update username, email or password of the caller
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: path
        name: user_id
        type: string
        required: true
      - in: body
        name: body
        schema:
          type: object
          properties:
            username: { type: string }
            email: { type: string }
            password: { type: string }
    responses:
      200: { description: OK }
      400: { description: Validation error or duplicate username/email }
      401: { description: Unauthorized }
      403: { description: Forbidden }
      404: { description: Not found }
    """
    data = user_update_schema.load(request.get_json(silent=True) or {})
    user = get_user_or_404(user_id)

    if "username" in data:
        ensure_unique("username", data["username"], user.id, "Username already exists.")
        user.username = data["username"]
    if "email" in data:
        ensure_unique("email", data["email"], user.id, "Email already exists.")
        user.email = data["email"]
    if "password" in data:
        user.password_hash = hash_password(data["password"])

    storage.new(user)
    storage.save()
    logger.info("updated user %s fields=%s", user.id, sorted(data))
    return jsonify(
        {
            "message": "User updated successfully.",
            "data": user_out_schema.dump(user)
        }
    ), 200


@bp.delete("/delete/<user_id>")
@owner_required()
def delete_user(user_id: str):
    """
    Delete the caller's account and its sessions
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: path
        name: user_id
        type: string
        required: true
    responses:
      200: { description: OK }
      403: { description: Forbidden }
      404: { description: Not found }
    """
    if storage.delete_by_id(User, user_id) is None:
        raise NotFound()
    get_auth_service().logout(user_id)
    logger.info("deleted user %s", user_id)
    return jsonify({"message": "User deleted successfully."}), 200


@bp.post("/update-progress/<user_id>")
@owner_required()
def update_progress(user_id: str):
    """
    Add experience to a user, leveling up as thresholds are reached
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: path
        name: user_id
        type: string
        required: true
      - in: body
        name: body
        schema:
          type: object
          properties:
            xpGained: { type: integer }
    responses:
      200: { description: "New level, experience and XP required for the next level" }
      400: { description: Validation error }
      404: { description: Not found }
    """
    data = progress_schema.load(request.get_json(silent=True) or {})
    user = get_user_or_404(user_id)

    progress = apply_progress(user, data["xp_gained"])
    storage.new(user)
    storage.save()

    return jsonify(
        {
            "message": f"User {user.username} is now level {user.level}!",
            "user": progress_out_schema.dump(
                {
                    "username": user.username,
                    "level": progress.level,
                    "experience": progress.experience,
                    "required_xp": progress.required_xp,
                }
            ),
        }
    ), 200
