"""
Configuration module for APK Tracker
Centralizes environment variables for the backend and dashboard
"""
import os
import logging

logger = logging.getLogger(__name__)

# Environment variables
MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "apk_tracker_db")

# Collection names (backend boundary)
APPS_COLLECTION = os.getenv("APPS_COLLECTION", "apps")
INSTALLS_COLLECTION = os.getenv("INSTALLS_COLLECTION", "app_installs")
OPENS_COLLECTION = os.getenv("OPENS_COLLECTION", "app_opens")
COUNTERS_COLLECTION = os.getenv("COUNTERS_COLLECTION", "counters")

# App key settings
APP_KEY_PREFIX = "apk"
APP_KEY_RANDOM_LENGTH = int(os.getenv("APP_KEY_RANDOM_LENGTH", "12"))

# Aggregation: "count" (per-app count queries) or "bulk" (fetch once, tally locally)
AGGREGATION_STRATEGY = os.getenv("AGGREGATION_STRATEGY", "count").lower()

# Run the app delete sequence in one transaction (needs a replica set)
USE_TRANSACTIONS = os.getenv("USE_TRANSACTIONS", "false").lower() in ("1", "true", "yes")

# HTTP server settings
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

if AGGREGATION_STRATEGY not in ("count", "bulk"):
    logger.warning(f"Unknown AGGREGATION_STRATEGY '{AGGREGATION_STRATEGY}', falling back to 'count'")
    AGGREGATION_STRATEGY = "count"
