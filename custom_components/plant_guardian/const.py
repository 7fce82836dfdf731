DOMAIN = "plant_guardian"
VERSION = "0.3.0"

# Config entry keys
CONF_ADDRESS = "address"
CONF_PORT = "port"
CONF_TRANSPORT = "transport"
CONF_SCAN_INTERVAL = "scan_interval"
CONF_WS_PORT = "ws_port"
CONF_HISTORY_SOURCE = "history_source"

TRANSPORT_POLL = "poll"
TRANSPORT_PUSH = "push"
TRANSPORTS = [TRANSPORT_POLL, TRANSPORT_PUSH]

HISTORY_WATERING_EVENTS = "watering_events"
HISTORY_CLIMATE = "climate_history"
HISTORY_SOURCES = [HISTORY_WATERING_EVENTS, HISTORY_CLIMATE]
DEFAULT_HISTORY_SOURCE = HISTORY_WATERING_EVENTS

DEFAULT_PORT = 80
DEFAULT_WS_PORT = 8080
DEFAULT_TRANSPORT = TRANSPORT_POLL

# Poll intervals (seconds) offered to the user
SCAN_INTERVALS = [5, 10]
DEFAULT_SCAN_INTERVAL = 10
PUSH_REFRESH_INTERVAL = 10   # getStatus re-request while the socket is open
WS_HEARTBEAT = 30            # aiohttp ping interval on the push socket

# WebSocket commands understood by the device
WS_COMMAND_GET_STATUS = "getStatus"
WS_COMMAND_WATER_NOW = "waterNow"
WS_STATUS_MESSAGE_TYPE = "status"

# Classification bands (lower edge inclusive)
MOISTURE_DRY_BELOW = 30
MOISTURE_WET_FROM = 60
TEMPERATURE_COLD_BELOW = 18.0
TEMPERATURE_HOT_ABOVE = 30.0
HUMIDITY_DRY_BELOW = 40.0
HUMIDITY_WET_ABOVE = 80.0

# History analytics
CHART_WINDOW = 7                 # most recent events plotted
LAST_WEEK_SECONDS = 7 * 24 * 3600
HISTORY_TTL = 60                 # history loads more often than this are served from memory
SETTINGS_TTL = 30

# Pagination
PAGE_SIZES = [10, 15, 20]
DEFAULT_PAGE_SIZE = 10

# HTTP
REQUEST_TIMEOUT = 5     # seconds, multiplied by attempt number for each retry
REQUEST_ATTEMPTS = 3
AVAILABILITY_TIMEOUT = 10
