from django.urls import path, include

from shared.common.health import get_health_urlpatterns

urlpatterns = [
    path('api/v1/', include('apps.core.urls')),
]

urlpatterns += get_health_urlpatterns()
