from flask import Blueprint, current_app

bp = Blueprint("health", __name__)


@bp.get("/health")
def health():
    """
    Health check
    ---
    tags:
      - Health
    responses:
      200:
        description: API is up
        schema:
          type: object
          properties:
            status:
              type: string
              example: ok
            session_store:
              type: string
              example: ok
            version:
              type: string
              example: 1.0.0
    """
    store = current_app.extensions.get("session_store")
    if store is None:
        store_status = "disabled"
    else:
        store_status = "ok" if store.ping() else "unavailable"
    return {"status": "ok", "session_store": store_status, "version": "1.0.0"}, 200
