"""WSGI entrypoint for the recipes API.

The Flask development server is intentionally not started from this module so
that deployments rely on Gunicorn (``gunicorn main:app``). Local development
can still use ``flask --app main run`` which imports the ``app`` object defined
below.
"""

from app import create_app

app = create_app()


__all__ = ["app"]
