VERSION = "1.0.0"

DEFAULT_TIMEOUT = 30000  # ms
DEFAULT_CONCURRENT = 3
DEFAULT_USER_AGENT = f"mdfetch/{VERSION}"
DEFAULT_WAIT_UNTIL = "networkidle2"

WAIT_UNTIL_OPTIONS = ("load", "domcontentloaded", "networkidle0", "networkidle2")

# Playwright only knows a single network idle state
PLAYWRIGHT_WAIT_UNTIL = {
    "load": "load",
    "domcontentloaded": "domcontentloaded",
    "networkidle0": "networkidle",
    "networkidle2": "networkidle",
}

CONFIG_FILE_NAMES = (
    ".mdfetchrc",
    ".mdfetchrc.json",
    ".mdfetchrc.yaml",
    ".mdfetchrc.yml",
)

RETRY_ATTEMPTS = 3
RETRY_DELAY = 1000  # ms

SCREENSHOT_FORMATS = ("png", "jpeg", "webp")
DEFAULT_VIEWPORT_WIDTH = 1920
DEFAULT_VIEWPORT_HEIGHT = 1080
DEFAULT_SCREENSHOT_QUALITY = 90

BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
]
