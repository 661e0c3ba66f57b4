"""dnsfailover — Application-wide constants and path configuration."""

import os
from pathlib import Path

# ---------------------------------------------------------------------------
# Runtime state directory  (~/.dnsfailover/)
# ---------------------------------------------------------------------------
STATE_DIR = Path(os.environ.get("DNSFAILOVER_STATE_DIR", Path.home() / ".dnsfailover"))
LOGS_DIR = STATE_DIR / "logs"
LOG_FILE = LOGS_DIR / "dnsfailover.log"
CONFIG_FILE = STATE_DIR / "config.json"

# ---------------------------------------------------------------------------
# Option source
# ---------------------------------------------------------------------------
ENV_PREFIX = "DNSFAILOVER_"

# Option keys consumed by the CLI itself (catalog keys live in core.catalog)
OPT_DOMAIN_NAME = "domain-name"
OPT_CLOUDFLARE_TOKEN = "cloudflare-token"
OPT_IDP = "idp"

# Keys whose values are masked by ``config show``
SECRET_OPTIONS = {OPT_CLOUDFLARE_TOKEN}

# ---------------------------------------------------------------------------
# Cloudflare API
# ---------------------------------------------------------------------------
CLOUDFLARE_API_BASE = "https://api.cloudflare.com/client/v4"
REQUEST_TIMEOUT_SECONDS = 30
RECORD_TYPE = "CNAME"

# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------
KEYRING_SERVICE = "dnsfailover_token"
KEYRING_USERNAME = "dnsfailover"

# ---------------------------------------------------------------------------
# Operator confirmation
# ---------------------------------------------------------------------------
CONFIRM_PROMPT = 'Type "yes" to set this DNS record'
CONFIRM_ANSWER = "yes"
