"""
Flipbook - Configuration
Paginator defaults, Telegram settings, and logging options
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# =============================================================================
# PATHS
# =============================================================================
PROJECT_ROOT = Path(__file__).parent
LOGS_DIR = PROJECT_ROOT / "logs"
DIAGNOSTIC_LOG_PATH = LOGS_DIR / "diagnostic.log"

# =============================================================================
# VERSION
# =============================================================================
VERSION = "0.1.0"
PROJECT_NAME = "Flipbook"

# =============================================================================
# PAGINATOR CONFIGURATION
# =============================================================================
# How long a paginator keeps listening for controls, in seconds.
PAGINATOR_TIMEOUT = float(os.getenv("PAGINATOR_TIMEOUT", "120"))
PAGINATOR_CIRCULAR = os.getenv("PAGINATOR_CIRCULAR", "true").lower() == "true"
PAGINATOR_STOPPABLE = os.getenv("PAGINATOR_STOPPABLE", "false").lower() == "true"
PAGINATOR_DELETE_ON_TIMEOUT = os.getenv("PAGINATOR_DELETE_ON_TIMEOUT", "false").lower() == "true"

# Delay between attaching two controls (transport rate limits)
CONTROL_PACING_DELAY = float(os.getenv("CONTROL_PACING_DELAY", "0.5"))

# {0} is the current page (1-based), {1} the page count
DEFAULT_FOOTER_FORMAT = "Page {0}/{1}"

# =============================================================================
# CONTROL SYMBOLS
# =============================================================================
# Default symbols for each action. Actions without a default stay disabled
# until a symbol is supplied.
DEFAULT_CONTROL_SYMBOLS = {
    "front": "⏮",
    "back": "◀",
    "next": "▶",
    "rear": "⏭",
    "stop": "⏹️",
}

# =============================================================================
# JUMP / INFO CONFIGURATION
# =============================================================================
JUMP_PROMPT = "Which page would you like to go to? Reply with a number."
JUMP_TIMEOUT = float(os.getenv("JUMP_TIMEOUT", "30"))
JUMP_DELETE_PROMPT = True
JUMP_DELETE_REPLY = True

INFO_TEXT = (
    "Use the buttons below the message to turn pages:\n"
    "⏮ first page, ◀ previous, ▶ next, ⏭ last page."
)
INFO_DELETE_AFTER = float(os.getenv("INFO_DELETE_AFTER", "10"))

# =============================================================================
# TELEGRAM CONFIGURATION
# =============================================================================
# Get a token from @BotFather
TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN", "")
TELEGRAM_POLL_INTERVAL = float(os.getenv("TELEGRAM_POLL_INTERVAL", "1.0"))
TELEGRAM_PARSE_MODE = "HTML"

# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_TO_FILE = True
LOG_TO_CONSOLE = True
