import os
from pathlib import Path
from dotenv import load_dotenv

# Values already in the environment win over the .env file
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH)

STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
STRIPE_API_VERSION = os.getenv("STRIPE_API_VERSION", "2024-06-20")

PAYMENT_CURRENCY = os.getenv("PAYMENT_CURRENCY", "usd").lower()
MIN_AMOUNT = int(os.getenv("MIN_AMOUNT", "100"))

# Private in-memory database by default: totals live as long as the process
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite://")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

SIDES = ("left", "right")
