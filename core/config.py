import os
from dotenv import load_dotenv

# Load environment variables from .env file, if it exists
load_dotenv()

# --- Logging ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# --- CORS ---
DEV_DOMAIN = os.getenv("DEV_DOMAIN", "http://localhost:5173")
PRODUCTION_DOMAIN = os.getenv("PRODUCTION_DOMAIN", "https://roofingfriend.com")

# --- Database ---
# Upper bound for a single statement; exceeding it is reported as a transient failure
DB_STATEMENT_TIMEOUT_MS = int(os.getenv("DB_STATEMENT_TIMEOUT_MS", "10000"))

# --- Notifications (SMS dispatch function) ---
NOTIFICATION_FUNCTION_URL = os.getenv("NOTIFICATION_FUNCTION_URL")
NOTIFICATION_FUNCTION_TOKEN = os.getenv("NOTIFICATION_FUNCTION_TOKEN")
NOTIFICATION_TIMEOUT_SECONDS = float(os.getenv("NOTIFICATION_TIMEOUT_SECONDS", "10"))

# --- Business rules ---
# Request dates/times are entered in local business time
BUSINESS_TIMEZONE = os.getenv("BUSINESS_TIMEZONE", "America/New_York")
PAYROLL_HOURLY_RATE = float(os.getenv("PAYROLL_HOURLY_RATE", "65.0"))
OVERTIME_PREMIUM_MULTIPLIER = float(os.getenv("OVERTIME_PREMIUM_MULTIPLIER", "0.5"))

# --- Team roster cache ---
ROSTER_FRESH_SECONDS = float(os.getenv("ROSTER_FRESH_SECONDS", "300"))
ROSTER_EVICT_SECONDS = float(os.getenv("ROSTER_EVICT_SECONDS", "600"))
