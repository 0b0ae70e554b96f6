from rest_framework import permissions


class IsVenueOwner(permissions.BasePermission):
    """
    Объект принадлежит владельцу площадки (или пользователь - администратор)
    """
    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated)

    def has_object_permission(self, request, view, obj):
        owner_id = getattr(obj, 'owner_id', None)
        if owner_id is None and hasattr(obj, 'venue'):
            owner_id = obj.venue.owner_id
        return owner_id == request.user.id or request.user.role == 'admin'
