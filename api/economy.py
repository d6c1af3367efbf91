"""
Economy blueprint: gem balance of a user.
- POST /add-funds/<user_id>
- POST /substract-funds/<user_id>
- GET  /get-balance/<user_id>
All routes need the caller's access token and only act on the caller.
"""
from __future__ import annotations

from flask import Blueprint, request, jsonify

from models.schemas.user import AmountSchema
from services import economy
from .users import get_user_or_404
from utils.decorators import owner_required

bp = Blueprint("economy", __name__)

amount_schema = AmountSchema()


@bp.post("/add-funds/<user_id>")
@owner_required()
def add_funds(user_id: str):
    """
    Credit gems
    ---
    tags:
      - Economy
    security:
      - Bearer: []
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
            amount: { type: integer }
    responses:
      200: { description: New balance }
      400: { description: Invalid amount }
      404: { description: Not found }
    """
    data = amount_schema.load(request.get_json(silent=True) or {})
    user = get_user_or_404(user_id)
    economy.add_gems(user, data["amount"])
    return jsonify(
        {
            "message": f"Added {data['amount']} gems.",
            "gems": user.gems,
        }
    ), 200


@bp.post("/substract-funds/<user_id>")
@owner_required()
def substract_funds(user_id: str):
    """
    Debit gems; fails when the balance is too low
    ---
    tags:
      - Economy
    security:
      - Bearer: []
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
            amount: { type: integer }
    responses:
      200: { description: New balance }
      400: { description: Invalid amount or insufficient funds }
      404: { description: Not found }
    """
    data = amount_schema.load(request.get_json(silent=True) or {})
    user = get_user_or_404(user_id)
    economy.subtract_gems(user, data["amount"])
    return jsonify(
        {
            "message": f"Deducted {data['amount']} gems from your account.",
            "gems": user.gems,
        }
    ), 200


@bp.get("/get-balance/<user_id>")
@owner_required()
def get_balance(user_id: str):
    """
    Current gem balance
    ---
    tags:
      - Economy
    security:
      - Bearer: []
    parameters:
      - in: path
        name: user_id
        type: string
        required: true
    responses:
      200: { description: Balance }
      404: { description: Not found }
    """
    user = get_user_or_404(user_id)
    return jsonify(
        {
            "message": "Balance retrieved successfully.",
            "balance": economy.balance(user),
        }
    ), 200
