from rest_framework import status
from rest_framework.exceptions import APIException


class SlotConflictError(APIException):
    """
    Слот уже занят другой бронью или удерживается другим клиентом
    """
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'The requested slot is no longer available.'
    default_code = 'slot_conflict'
