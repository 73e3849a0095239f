"""Configuration settings for the LanShare hub."""

import os
from common.constants import DEFAULT_HUB_PORT


DATABASE_PATH = os.environ.get("LANSHARE_DATABASE_PATH", "./data/metadata.db")

HUB_HOST = os.environ.get("LANSHARE_HOST", "0.0.0.0")

HUB_PORT = int(os.environ.get("LANSHARE_PORT", str(DEFAULT_HUB_PORT)))

CORS_ORIGINS = [o.strip() for o in os.environ.get("LANSHARE_CORS_ORIGINS", "*").split(",") if o.strip()]

API_KEY_PREFIX = "lsk_"

# "local" keeps blobs on disk next to the database, "drive" relays them to Google Drive
BLOB_BACKEND = os.environ.get("LANSHARE_BLOB_BACKEND", "local").lower()

BLOB_STORAGE_PATH = os.environ.get("LANSHARE_BLOB_PATH", "./data/blobs")

GOOGLE_CLIENT_ID = os.environ.get("GOOGLE_CLIENT_ID")

GOOGLE_CLIENT_SECRET = os.environ.get("GOOGLE_CLIENT_SECRET")

GOOGLE_REFRESH_TOKEN = os.environ.get("GOOGLE_REFRESH_TOKEN")

GOOGLE_DRIVE_FOLDER_ID = os.environ.get("GOOGLE_DRIVE_FOLDER_ID")
