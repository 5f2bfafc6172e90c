from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import MeAPIView, SyncUserAPIView, TeamViewSet, UserViewSet

router = DefaultRouter()
router.register(r"users", UserViewSet, basename="users")
router.register(r"teams", TeamViewSet, basename="teams")

urlpatterns = [
    path("", include(router.urls)),
    path("auth/sync-user/", SyncUserAPIView.as_view(), name="auth-sync-user"),
    path("auth/me/", MeAPIView.as_view(), name="auth-me"),
]
