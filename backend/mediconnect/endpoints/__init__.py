# mediconnect/endpoints/__init__.py

# Import routers from each endpoint file
from .actions import router as actions
from .transfers import router as transfers
from .departments import router as departments
from .visits import router as visits
from .patients import router as patients
from .organizations import router as organizations
from .stats import router as stats

__all__ = ["actions", "transfers", "departments", "visits", "patients", "organizations", "stats"]
