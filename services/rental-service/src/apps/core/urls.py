from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import BookingViewSet, PricingViewSet, AvailabilityViewSet, JobsViewSet

router = DefaultRouter()
router.register(r'bookings', BookingViewSet, basename='booking')
router.register(r'pricing', PricingViewSet, basename='pricing')
router.register(r'availability', AvailabilityViewSet, basename='availability')
router.register(r'jobs', JobsViewSet, basename='jobs')

urlpatterns = [path('', include(router.urls))]
