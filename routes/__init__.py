from . import trips
from . import public_trips
from . import activities
from . import auth

__all__ = [
    "trips",
    "public_trips",
    "activities",
    "auth",
]
