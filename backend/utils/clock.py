import os
from datetime import datetime

import pytz
from dotenv import load_dotenv

load_dotenv()

APP_TIMEZONE = os.getenv("APP_TIMEZONE", "UTC")


def now() -> datetime:
    return datetime.now(pytz.timezone(APP_TIMEZONE))


def today_stamp() -> str:
    return now().strftime("%Y%m%d")
