"""Shared API constants."""

# Pagination defaults
DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100

# Validation limits
MAX_SYMPTOMS_LENGTH = 5000
MAX_NOTES_LENGTH = 10000
MAX_REPORT_NAME_LENGTH = 120

# Photos arrive as base64 data URIs; ~10MB of image data
MAX_PHOTO_DATA_URI_LENGTH = 14 * 1024 * 1024
