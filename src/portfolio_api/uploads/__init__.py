"""
portfolio_api.uploads

File upload handling.

Responsibilities:
- Validate a single uploaded file (field, count, media type, extension, size).
- Store it under a random name, partitioned into image/document directories.
- Hand an `UploadRecord` to the route, which stores only the public URL.
"""

# Package marker.
