"""Background workers module.

Hosts the Celery application that runs scheduled housekeeping sweeps.
"""

from .celery_app import celery_app

__all__ = ["celery_app"]
