# API Routers
from illary.routers import auth, rooms, reservations, admin

__all__ = ['auth', 'rooms', 'reservations', 'admin']
