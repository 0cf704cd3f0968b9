"""Demo: issue a credential on one service, verify it on the other.

Both apps run in-process with FastAPI TestClient over one SQLite file,
the same way two containers share a mounted volume.

Run with:
    python scripts/demo_issue_verify.py
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import replace
from pathlib import Path

os.environ.setdefault("DATABASE_URL", "memory")

from fastapi.testclient import TestClient  # noqa: E402

from credsvc.core.config import SETTINGS  # noqa: E402
from credsvc.main import create_app  # noqa: E402


def main() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        db_url = f"sqlite+aiosqlite:///{Path(tmp) / 'credentials.db'}"
        settings = replace(SETTINGS, database_url=db_url, redis_url=None)

        issuance = create_app("issuance", settings, worker_id="worker-demo1")
        verification = create_app("verification", settings, worker_id="verifier-demo1")

        with TestClient(issuance) as issuer, TestClient(verification) as verifier:
            # ── Step 1: issue a new credential ──────────────────────────
            r = issuer.post("/issue", json={"id": "CRED-DEMO", "name": "Alice"})
            print(f"1. POST /issue               → {r.status_code}  {r.json()['message']}")

            # ── Step 2: issue it again ──────────────────────────────────
            r = issuer.post("/issue", json={"id": "CRED-DEMO", "name": "Mallory"})
            print(f"2. POST /issue (duplicate)   → {r.status_code}  {r.json()['message']}")

            # ── Step 3: verify it on the other service ──────────────────
            r = verifier.post("/verify", json={"id": "CRED-DEMO"})
            body = r.json()
            print(
                f"3. POST /verify              → {r.status_code}  "
                f"{body['status']} (issued by {body['worker']} at {body['timestamp']})"
            )

            # ── Step 4: verify something never issued ───────────────────
            r = verifier.get("/verify/CRED-UNKNOWN")
            print(f"4. GET  /verify/CRED-UNKNOWN → {r.status_code}  {r.json()['message']}")

            # ── Step 5: issue without an id ─────────────────────────────
            r = issuer.post("/issue", json={"name": "Bob"})
            generated = r.json()["credentialId"]
            print(f"5. POST /issue (no id)       → {r.status_code}  id={generated}")
            r = verifier.get(f"/verify/{generated}")
            print(f"   GET  /verify/<generated>  → {r.status_code}  {r.json()['status']}")


if __name__ == "__main__":
    main()
