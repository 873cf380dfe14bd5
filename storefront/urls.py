from django.contrib import admin
from django.urls import path, include
from django.conf import settings

# Main URL configuration
urlpatterns = [
    # Django admin (the store back-office lives under /admin/)
    path('django-admin/', admin.site.urls),
    path('', include('store.urls')),
]

if settings.DEBUG and "django_browser_reload" in settings.INSTALLED_APPS:
    urlpatterns += [
        path("__reload__/", include("django_browser_reload.urls")),
    ]
