import os
from dotenv import load_dotenv

load_dotenv()  # Load variables from .env

# ---------------------- DATABASE ----------------------
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./ecowaste.db")
# Local store standing in for the browser's localStorage
CLIENT_STORAGE_URL = os.getenv("CLIENT_STORAGE_URL", "sqlite:///./ecowaste_client.db")

# ---------------------- JWT ----------------------
SECRET_KEY = os.getenv("SECRET_KEY", "change-me-please")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60))

# ---------------------- BACKENDS ----------------------
BACKEND_MODE = os.getenv("BACKEND_MODE", "rest")  # rest or supabase
API_URL = os.getenv("API_URL", "http://localhost:3001")
API_TIMEOUT = float(os.getenv("API_TIMEOUT")) if os.getenv("API_TIMEOUT") else None

SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")

# ---------------------- CREDITS ----------------------
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@example.com")
STARTING_CREDITS = int(os.getenv("STARTING_CREDITS", 50))
REDEEM_THRESHOLD = int(os.getenv("REDEEM_THRESHOLD", 100))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
