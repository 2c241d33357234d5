"""
Media app for chat attachments.

This app provides:
- Upload validation against an allow-list of MIME types
- Streaming storage under MEDIA_ROOT with generated names
- File info and deletion endpoints
- Periodic cleanup of expired uploads
"""
