from os import getenv

PORT: int = int(getenv("PORT", 8000))

# The server is meant to run inside a container, so it listens everywhere
HOST: str = getenv("HOST", "0.0.0.0")  # nosec: B104

# The directory mounted by the deployment, files are only ever read from here
ROOT: str = getenv("HTTPFS_ROOT", "/assets")

# Document served for paths ending with a slash
INDEX: str = "index.html"

LOG_REQUESTS: bool = getenv("HTTPFS_LOG_REQUESTS", "1") == "1"

LOG_LEVEL: str = getenv("HTTPFS_LOG_LEVEL", "info").lower()

# EOF
