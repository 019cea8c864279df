from os import getenv

DEFAULT_ENCODING: str = "utf8"

# One of debug, info, checkpoint, warning, error
LOG_LEVEL: str = getenv("LAYERED_LOG_LEVEL", "info")

LOG_REQUESTS: bool = getenv("LAYERED_LOG_REQUESTS", "1") == "1"

# Embeds the traceback in the body of 500 responses. Turn it off when the
# application faces untrusted clients.
ERROR_TRACES: bool = getenv("LAYERED_ERROR_TRACES", "1") == "1"

# Reserved introspection path, answered by the dispatcher when no route matches.
ROUTES_PATH: str = "/routes"

# EOF
