import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./bookingsync.db")

# All appointment dates/times are wall-clock values in this timezone
BOOKING_TIMEZONE = os.getenv("BOOKING_TIMEZONE", "Asia/Bangkok")

# Reminder sweep looks this far ahead of "now" for confirmed appointments
REMINDER_LOOKAHEAD_MINUTES = int(os.getenv("REMINDER_LOOKAHEAD_MINUTES", "60"))

# Google Calendar service account
# GOOGLE_PRIVATE_KEY is usually stored with literal "\n" sequences in env files
GOOGLE_CLIENT_EMAIL = os.getenv("GOOGLE_CLIENT_EMAIL")
GOOGLE_PRIVATE_KEY = (os.getenv("GOOGLE_PRIVATE_KEY") or "").replace("\\n", "\n") or None

# LINE Messaging API
LINE_CHANNEL_ACCESS_TOKEN = os.getenv("LINE_CHANNEL_ACCESS_TOKEN")
LINE_API_TIMEOUT = float(os.getenv("LINE_API_TIMEOUT", "10.0"))

# Shop details used in customer-facing messages
SHOP_NAME = os.getenv("SHOP_NAME", "Beauty Salon")
REVIEW_LIFF_ID = os.getenv("NEXT_PUBLIC_REVIEW_LIFF_ID", os.getenv("REVIEW_LIFF_ID", ""))
PAYMENT_LIFF_ID = os.getenv("NEXT_PUBLIC_PAYMENT_LIFF_ID", os.getenv("PAYMENT_LIFF_ID", ""))
PROMPTPAY_ID = os.getenv("PROMPTPAY_ID")

# Shared secret for the external cron trigger (Authorization: Bearer <CRON_SECRET>)
CRON_SECRET = os.getenv("CRON_SECRET")
