"""Exchange a CI identity token for a Gruntwork Pipelines read token."""
from typing import Final

__version__ = "1.0.0"

LOGIN_PATH: Final[str] = "/tokens/auth/login"
PAT_PATH_TEMPLATE: Final[str] = "/tokens/pat/{path}"

# 3 retries -> 4 attempts total
LOGIN_MAX_RETRIES: Final[int] = 3
MAX_BACKOFF_MS: Final[int] = 3000

# Must stay project relative to work with GitLab dotenv artifacts
DEFAULT_OUTPUT_FILE: Final[str] = "credentials.sh"
OUTPUT_KEY: Final[str] = "PIPELINES_GRUNTWORK_READ_TOKEN"

SERVICE_NAME: Final[str] = "pipelines-credentials"
