# Client Services
from illary.services.api_client import ApiClient, ApiError, AuthenticationError, ServiceUnavailableError
from illary.services.auth_service import AuthService
from illary.services.room_service import RoomService, RoomTypeService
from illary.services.establishment_service import EstablishmentService
from illary.services.reservation_service import ReservationService
from illary.services.user_service import UserService
from illary.services.booking_service import BookingService
from illary.services.stores import ResourceStore, ReservationStore, StoreBusyError

__all__ = [
    'ApiClient', 'ApiError', 'AuthenticationError', 'ServiceUnavailableError',
    'AuthService', 'RoomService', 'RoomTypeService', 'EstablishmentService',
    'ReservationService', 'UserService', 'BookingService',
    'ResourceStore', 'ReservationStore', 'StoreBusyError'
]
