"""Centralized defaults for target URLs, timing and browser launch."""

# Target service
DEFAULT_HOME_URL = "https://www.paramountplus.com/"
DEFAULT_ACCOUNT_URL = "https://www.paramountplus.com/account/"
DEFAULT_BILLING_URL = "https://www.paramountplus.com/account/billing/"
DEFAULT_BILLING_PATH = "/billing"

# Timeouts (seconds)
DEFAULT_NAVIGATION_TIMEOUT = 30.0
DEFAULT_FIELD_TIMEOUT = 5.0
DEFAULT_SUBMIT_TIMEOUT = 20.0
DEFAULT_RESOLVER_CANDIDATE_TIMEOUT = 2.0
DEFAULT_RESOLVER_FALLBACK_TIMEOUT = 10.0
DEFAULT_PROBE_TIMEOUT = 1.5
DEFAULT_CLICK_TIMEOUT = 3.0

# Retry budgets
FIELD_RETRIES = 5
SUBMIT_RETRIES = 3
DEFAULT_RETRY_INITIAL_DELAY = 0.3
DEFAULT_RETRY_MAX_DELAY = 5.0
DEFAULT_RETRY_BACKOFF_FACTOR = 2.0

# Task log
TASK_TYPE_UPDATE_CARD = "UPDATE_CARD"

# Windows fallback when no executable is configured
WINDOWS_CHROME_PATH = "C:/Program Files/Google/Chrome/Application/chrome.exe"

LAUNCH_ARGS = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-blink-features=AutomationControlled",
    "--disable-infobars",
    "--disable-dev-shm-usage",
)

USER_AGENTS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.4 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/123.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:125.0) Gecko/20100101 Firefox/125.0",
)

VIEWPORT_WIDTH_RANGE = (1280, 1920)
VIEWPORT_HEIGHT_RANGE = (720, 1080)
