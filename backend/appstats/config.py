# appstats/config.py
import os
from dotenv import load_dotenv

load_dotenv()

# --- INFRASTRUKTURA ---
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./appstats.db")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Zewnętrzne usługi (puste = wyłączone)
NOTIFICATION_WEBHOOK_URL = os.getenv("NOTIFICATION_WEBHOOK_URL")
LOGSNAG_TOKEN = os.getenv("LOGSNAG_TOKEN")
LOGSNAG_PROJECT = os.getenv("LOGSNAG_PROJECT", "appstats")
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "10"))

STORE_LANG = os.getenv("STORE_LANG", "en")
STORE_COUNTRY = os.getenv("STORE_COUNTRY", "us")

# --- DOMYŚLNE WARTOŚCI RAPORTU ---
# Starsze wersje pluginu nie wysyłają plugin_version
DEFAULT_PLUGIN_VERSION = "2.3.3"
DEFAULT_IS_EMULATOR = False
DEFAULT_IS_PROD = True
UNKNOWN_VERSION = "unknown"

# --- AKCJE I POWIADOMIENIA ---
METHODS_JSON = ("POST", "PUT", "PATCH")

FAIL_ACTIONS = ("set_fail", "update_fail", "download_fail")
FAIL_NOTIFICATION_EVENT = "user:update_fail"
FAIL_NOTIFICATION_CRON = "0 0 * * 1"  # raz w tygodniu, poniedziałek
FAIL_NOTIFICATION_COLOR = "orange"

# --- KATALOG SKLEPU ---
DEFAULT_CATEGORY = "APPLICATION"
DEFAULT_COLLECTION = "topselling_free"
DEFAULT_LIMIT = 1000
DEFAULT_SKIP = 0
