DOMAIN = "geofence_console"
VERSION = "0.1.0"

DEFAULT_ENTRY_NAME = "My Geofence Console"
DEFAULT_API_URL = "https://safetnet-backend.onrender.com"

# Endpoint paths, relative to the configured API URL
LOGIN_PATH = "api/auth/login/"
USER_DETAIL_PATH = "api/auth/admin/users/{user_id}/"
GEOFENCES_PATH = "api/auth/admin/geofences/"
GEOFENCE_DETAIL_PATH = "api/auth/admin/geofences/{geofence_id}/"

# Role strings as returned by the backend
ROLE_BOUNDARY_AUTHOR = "SUB_ADMIN"
ROLE_BOUNDARY_VIEWER = "SUPER_ADMIN"

# Update intervals (seconds)
GEOFENCES_INTERVAL = 60      # full geofence list refresh
TOKEN_TTL = 3600             # re-login when the access token is older than this

# Requests
REQUEST_TIMEOUT = 10         # seconds, multiplied by attempt number for each retry
READ_ATTEMPTS = 3            # list/detail reads retry on timeout
WRITE_ATTEMPTS = 1           # create/update/delete are never retried

# Boundary capture
MIN_POLYGON_POINTS = 3

# Display palette, assigned by list position
GEOFENCE_COLORS: list[str] = [
    "#6366f1",
    "#8b5cf6",
    "#06b6d4",
    "#10b981",
    "#f59e0b",
    "#ec4899",
    "#14b8a6",
    "#f97316",
]

# Config entry keys
CONF_ENTRY_NAME = "entry_name"
CONF_API_URL = "api_url"
CONF_USERNAME = "username"
CONF_PASSWORD = "password"
CONF_GUID = "guid"

# Services
SERVICE_ADD_BOUNDARY_POINT = "add_boundary_point"
SERVICE_REMOVE_LAST_BOUNDARY_POINT = "remove_last_boundary_point"
SERVICE_CLEAR_BOUNDARY_POINTS = "clear_boundary_points"
SERVICE_CONFIRM_BOUNDARY = "confirm_boundary"
SERVICE_CANCEL_BOUNDARY = "cancel_boundary"
SERVICE_CREATE_GEOFENCE = "create_geofence"
SERVICE_UPDATE_GEOFENCE = "update_geofence"
SERVICE_REQUEST_DELETION = "request_geofence_deletion"
SERVICE_CONFIRM_DELETION = "confirm_geofence_deletion"
SERVICE_CANCEL_DELETION = "cancel_geofence_deletion"
SERVICE_SELECT_GEOFENCE = "select_geofence"

ATTR_CONFIG_ENTRY_ID = "config_entry_id"
ATTR_GEOFENCE_ID = "geofence_id"
ATTR_ORGANIZATION_ID = "organization_id"

READ_ONLY_NOTICE = (
    "You have view-only access to geofences across all organizations. "
    "Only boundary authors can create, edit and delete geofences within "
    "their assigned organizations."
)
