# config.py
import os
from dotenv import load_dotenv

# Load environment variables (Cloud Run injects them directly; .env is for local runs)
load_dotenv()

APP_NAME = os.getenv("APP_NAME", "KrishakMitraApp")
APP_ID = os.getenv("APP_ID", "krishak_mitra_app_v1")
MODEL_NAME = os.getenv("MODEL_NAME", "gemini-2.0-flash")

FIREBASE_CREDENTIALS_PATH = os.getenv("FIREBASE_CREDENTIALS_PATH", "/secrets/firebase_key.json")
FIREBASE_STORAGE_BUCKET = os.getenv("FIREBASE_STORAGE_BUCKET")

DATA_GOV_API_KEY = os.getenv("DATA_GOV_API_KEY")
NEWSDATA_API_KEY = os.getenv("NEWSDATA_API_KEY")
GOOGLE_PLACES_API_KEY = os.getenv("GOOGLE_PLACES_API_KEY")

TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID")
TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN")
TWILIO_PHONE_NUMBER = os.getenv("TWILIO_PHONE_NUMBER")

HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "10"))
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
PORT = int(os.getenv("PORT", "8005"))

SCHEMES_DATA_PATH = os.getenv(
    "SCHEMES_DATA_PATH",
    os.path.join(os.path.dirname(os.path.abspath(__file__)), "data", "schemes.json"),
)
