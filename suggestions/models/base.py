# Suggestion tables register on the application-wide Base from db.py,
# so init_db() and the test fixtures create them with everything else
from db import Base

__all__ = ["Base"]
