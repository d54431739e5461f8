"""Run the FastAPI analytics service. Usage: python run_api.py"""
import os
from pathlib import Path

# Load .env first so settings see it regardless of the working directory.
_load_env = Path(__file__).resolve().parent / ".env"
if _load_env.exists():
    from dotenv import load_dotenv
    load_dotenv(_load_env)

import uvicorn
from api.main import app

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
