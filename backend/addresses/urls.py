"""
Addresses app URL configuration.

  /api/addresses/                      → list / create
  /api/addresses/default/              → the caller's default address
  /api/addresses/{id}/                 → retrieve / partial_update / destroy
  POST /api/addresses/{id}/set-default/
  POST /api/addresses/{id}/mark-used/
"""

from rest_framework.routers import DefaultRouter

from .views import AddressViewSet

router = DefaultRouter()
router.register(prefix=r"addresses", viewset=AddressViewSet, basename="address")

urlpatterns = router.urls
