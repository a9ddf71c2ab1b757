import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

MONGODB_URI = os.getenv("MONGODB_URI")
MONGODB_DB = os.getenv("MONGODB_DB")

# Facebook app used for the OAuth dialog and code exchange
CLIENT_ID = os.getenv("CLIENT_ID")
CLIENT_SECRET = os.getenv("CLIENT_SECRET")
REDIRECT_URI = os.getenv("REDIRECT_URI")
INSTAGRAM_SCOPES = os.getenv(
    "INSTAGRAM_SCOPES",
    "instagram_basic,instagram_manage_insights,pages_show_list,pages_read_engagement"
).split(",")
POST_AUTH_REDIRECT_URL = os.getenv("POST_AUTH_REDIRECT_URL", "/")

GRAPH_API_VERSION = os.getenv("GRAPH_API_VERSION", "v20.0")
GRAPH_API_BASE = f"https://graph.facebook.com/{GRAPH_API_VERSION}"
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", 30))

UPDATE_INTERVAL_SECONDS = int(os.getenv("UPDATE_INTERVAL_SECONDS", 3600))
TOKEN_RETRY_DELAY_SECONDS = float(os.getenv("TOKEN_RETRY_DELAY_SECONDS", 2))

# On Vercel there is no long-lived process, updates come from /api/update
IS_SERVERLESS = os.getenv("VERCEL") == "1"
SELF_UPDATE_URL = os.getenv("SELF_UPDATE_URL")
CRON_SECRET = os.getenv("CRON_SECRET", "")

CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*").split(",")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
PORT = int(os.getenv("PORT", 3000))
