"""Constants for the Sec1 SAST scanner integration."""

# Sec1 API
DEFAULT_INSTANCE_URL = "https://api.sec1.io"
INSTANCE_URL_ENV = "SEC1_INSTANCE_URL"
API_CONTEXT = "/rest"
SCAN_API = "/foss/sast/ascan"
STATUS_CHECK_API = "/sast/asset/report/status"  # Not under API_CONTEXT
API_KEY_HEADER = "sec1-api-key"
SCAN_SOURCE = "jenkins"
HTTP_TIMEOUT_SECONDS = 30.0

# Dashboard link printed with every report
REPORT_URL_PREFIX = "https://scopy.sec1.io/sast-advance-dashboard/"

# Credentials
DEFAULT_CREDENTIALS_ID = "SEC1_API_KEY"

# Poll loop
POLL_INTERVAL_SECONDS = 10
SCAN_TIMEOUT_SECONDS = 10 * 60  # 10 minutes

# Git metadata
GIT_DIR = ".git"
GIT_CONFIG_FILE = "config"
GIT_HEAD_FILE = "HEAD"
ORIGIN_SECTION = '[remote "origin"]'

# Workspace
WORKSPACE_ENV = "WORKSPACE"
