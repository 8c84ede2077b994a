"""Internal constants shared across the library."""

EVENTS_URL = "ws://localhost:8080/api/v1/ws"
MONITOR_URL = "ws://localhost:8080/api/v1/mon"

#: Seconds between two clock ticks.
CLOCK_INTERVAL = 1.0

#: ``state`` carried by seeded pipeline stages before any live update.
IDLE_STATE = 100

# Longest frame excerpt written to DEBUG/WARNING logs.
LOG_FRAME_LIMIT = 256
