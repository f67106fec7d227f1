API_VERSION_HEADER = "X-CourseMap-Version"

# Map render endpoint
MIN_REQUEST_ZOOM = 0
MAX_REQUEST_ZOOM = 20
DEFAULT_MAP_ZOOM = 4
# Center of the contiguous US, where the map opens
DEFAULT_MAP_CENTER = (39.8283, -98.5795)
