"""
Epistle Walk API routes: the versioned endpoints and their OpenAPI docs.
"""
from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

app_name = 'api'

urlpatterns = [
    path('v1/', include('api.v1.urls', namespace='v1')),

    # Schema for the reading and auth endpoints
    path('schema/', SpectacularAPIView.as_view(), name='schema'),
    path('docs/', SpectacularSwaggerView.as_view(url_name='api:schema'), name='docs'),
]
