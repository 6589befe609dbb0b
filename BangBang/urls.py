from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static

# Admin
urlpatterns = [
    path('admin/', admin.site.urls),
]

# Storefront API
urlpatterns += [
    path('', include('store.urls')),
]

# Static during debug
if settings.DEBUG:
    urlpatterns += static(settings.STATIC_URL, document_root=settings.STATIC_ROOT)
