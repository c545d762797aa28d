"""
Third-party extensions wiring.

Shared Flask extension instances live here so routes can import them
without importing the app factory.
"""

from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# Initialized by create_app() with RATELIMIT_* config.
# Routes apply per-endpoint limits with @limiter.limit(...).

limiter = Limiter(key_func=get_remote_address)
