"""
Persistence layer: the user record store (SQLAlchemy) and the session stores.

`storage` is the process-wide DBStorage; create_app() binds it to the
configured DATABASE_URL through storage.reload().
"""
from models.db_storage import DBStorage

storage = DBStorage()
