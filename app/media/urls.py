"""
URL configuration for media app.

Upload:
    POST   /upload                - Upload attachment
    GET    /upload/{filename}     - Stored file info
    DELETE /upload/{filename}     - Delete stored file

All URLs are prefixed with /api/ in the main URL configuration. Stored files
themselves are served at /uploads/{filename} (see config.urls).
"""

from django.urls import path

from media.views import UploadDetailView, UploadView

app_name = "media"

urlpatterns = [
    path("upload", UploadView.as_view(), name="upload"),
    path("upload/<str:filename>", UploadDetailView.as_view(), name="upload-detail"),
]
