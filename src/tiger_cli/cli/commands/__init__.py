from .db import app as db_app
from .service import app as service_app

__all__ = ["db_app", "service_app"]
