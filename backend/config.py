"""Configuration management for Chat Me."""
import os
import logging
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# API Keys
GROQ_API_KEY = os.getenv("GROQ_API_KEY")
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")

# Google OAuth
GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")
GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET")
GOOGLE_CALLBACK_URL = os.getenv(
    "GOOGLE_CALLBACK_URL",
    "http://localhost:8000/auth/google/callback"
)

# Server Configuration
PORT = int(os.getenv("PORT", "8000"))
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "text")  # "text" or "json"

# Session Configuration
SESSION_SECRET = os.getenv("SESSION_SECRET", "replace-with-a-secure-secret")
SESSION_MAX_AGE = 60 * 60 * 24 * 7  # 7 days, seconds
SESSION_COOKIE = "chatme.sid"

# CORS Configuration
CORS_ORIGINS = os.getenv(
    "CORS_ORIGINS",
    "http://localhost:3000,http://localhost:8000"
).split(",")

# Model Configuration
LLM_MODEL = os.getenv("LLM_MODEL", "llama-3.1-8b-instant")
UPSTREAM_TIMEOUT = float(os.getenv("UPSTREAM_TIMEOUT", "30"))  # seconds

# Client Configuration
API_BASE_URL = os.getenv("API_BASE_URL", f"http://localhost:{PORT}")
LOCAL_STORAGE_DIR = os.getenv("LOCAL_STORAGE_DIR")  # None keeps guest history in memory
HISTORY_NAMESPACE = "chatHistory"
SPEECH_RATE = 0.85

# Entry points
LOGIN_PAGE = "/index.html"
CHAT_PAGE = "/chat.html"

# Logging Configuration
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
