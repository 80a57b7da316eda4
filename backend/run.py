#!/usr/bin/env python3
# backend/run.py
"""
Development server runner.

Serves app.main:app with auto-reload. Database and lock settings come from
the environment (or backend/.env) exactly as in any other deployment.
"""
import os
from pathlib import Path

import uvicorn

backend_dir = Path(__file__).parent
os.chdir(backend_dir)

if __name__ == "__main__":
    port = int(os.getenv("PORT", "8000"))
    print(f"Starting GarageBook API at http://localhost:{port} (docs at /docs)")
    uvicorn.run("app.main:app", host="0.0.0.0", port=port, reload=True, log_level="info")
