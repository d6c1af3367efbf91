"""
Authentication blueprint:
- POST /register
- POST /login
- POST /refresh
- POST /logout

Tokens:
- short-lived access token and long-lived refresh token, HS256 JWTs
- with the session strategy the latest pair of each user lives in the session
  store; refresh rotates both, so every refresh token can be used once
"""
from __future__ import annotations

import logging

from flask import Blueprint, request, jsonify, g

from models import storage
from models.user import User
from models.schemas.user import UserCreateSchema, UserOutSchema, UserLoginSchema, RefreshSchema
from services.errors import Conflict
from utils.decorators import get_auth_service, token_required
from utils.security import hash_password

logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__)

user_create_schema = UserCreateSchema()
user_out_schema = UserOutSchema()
user_login_schema = UserLoginSchema()
refresh_schema = RefreshSchema()


@bp.post("/register")
def register():
    """
    Register a new user.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            username: { type: string }
            email: { type: string }
            password: { type: string }
    responses:
      201:
        description: Created
      400:
        description: Validation error or user already registered
    """
    data = user_create_schema.load(request.get_json(silent=True) or {})

    if storage.find_by(User, email=data["email"]):
        raise Conflict("This email is already registered.")
    if storage.find_by(User, username=data["username"]):
        raise Conflict("This username is already taken.")

    user = User(
        username=data["username"],
        email=data["email"],
        password_hash=hash_password(data["password"]),
    )
    storage.new(user)
    storage.save()
    logger.info("registered user %s", user.id)

    return jsonify(
        {
            "message": "User created successfully.",
            "data": user_out_schema.dump(user)
        }
    ), 201


@bp.post("/login")
def login():
    """
    Login: return accessToken, refreshToken and userId
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             username: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      400:
        description: Validation error or wrong password
      404:
        description: Unknown username
    """
    data = user_login_schema.load(request.get_json(silent=True) or {})
    pair = get_auth_service().login(data["username"], data["password"])

    return jsonify(
        {
            "message": "Login successful.",
            "accessToken": pair.access_token,
            "refreshToken": pair.refresh_token,
            "userId": pair.user_id,
        }
    ), 200


@bp.post("/refresh")
def refresh():
    """
    Exchange a refresh token for a new access/refresh pair (rotation)
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refreshToken: { type: string }
    responses:
      200:
        description: OK (returns new tokens)
      400:
        description: refreshToken missing
      401:
        description: Invalid, expired or already rotated refresh token
    """
    data = refresh_schema.load(request.get_json(silent=True) or {})
    pair = get_auth_service().refresh(data["refresh_token"])

    return jsonify(
        {
            "message": "Tokens refreshed successfully.",
            "accessToken": pair.access_token,
            "refreshToken": pair.refresh_token,
        }
    ), 200


@bp.post("/logout")
@token_required()
def logout():
    """
    Logout: clears the caller's access and refresh tokens
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      204:
        description: ""
      401:
        description: Unauthorized
    """
    get_auth_service().logout(g.current_user_id)
    return ("", 204)
