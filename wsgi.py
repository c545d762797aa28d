"""
Production WSGI entry point for Gunicorn.

Gunicorn imports this file and looks for a top-level variable named `app`.

Usage:
    gunicorn -w 2 -k gthread -b 0.0.0.0:$PORT wsgi:app
"""

from carecoach import create_app

app = create_app()
