"""Small CLI helpers wired to project scripts for developer convenience.

Usage (from project root):
  telecare-runserver --host=0.0.0.0 --port=8000 --no-reload
  telecare-run-tests
  telecare-migrate          # defaults to `alembic upgrade head`
  telecare-init-env         # copies .env.example -> .env if missing
  telecare-init-db          # creates all tables without alembic
  telecare-cron-smoke --base-url http://localhost:8000 --secret=...
"""
from __future__ import annotations

import json
import sys
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional, Tuple

import httpx


def _args() -> List[str]:
    return sys.argv[1:]


def _flag(name: str, default: Optional[str] = None) -> Optional[str]:
    """Value of `--name=value` or `--name value`; default when absent."""
    option = f"--{name}"
    args = _args()
    for i, a in enumerate(args):
        if a.startswith(option + "="):
            return a.split("=", 1)[1]
        if a == option and i + 1 < len(args) and not args[i + 1].startswith("--"):
            return args[i + 1]
    return default


def runserver() -> None:
    """Run Uvicorn programmatically. Accepts simple flags:

    --host=<host>  (default 127.0.0.1)
    --port=<port>  (default 8000)
    --no-reload    (disable auto-reload)
    --reload       (enable auto-reload)
    """
    import uvicorn

    host = _flag("host", "127.0.0.1")
    port = 8000
    reload = True

    for a in _args():
        if a.startswith("--port="):
            try:
                port = int(a.split("=", 1)[1])
            except ValueError:
                print(f"Ignoring invalid port: {a}")
        elif a == "--no-reload":
            reload = False
        elif a == "--reload":
            reload = True

    print(f"Starting uvicorn on {host}:{port} (reload={reload})")
    uvicorn.run("telecare.main:app", host=host, port=port, reload=reload)


def run_tests() -> None:
    """Run pytest with any forwarded args."""
    cmd = ["pytest"] + _args()
    subprocess.run(cmd, check=True)


def run_migrations() -> None:
    """Run alembic. If no args provided, runs `alembic upgrade head`."""
    args = _args()
    if args:
        cmd = ["alembic"] + args
    else:
        cmd = ["alembic", "upgrade", "head"]
    subprocess.run(cmd, check=True)


def init_env() -> None:
    """Copy `.env.example` to `.env` if `.env` is missing."""
    root = Path(__file__).resolve().parents[1]
    src = root / ".env.example"
    dst = root / ".env"
    if dst.exists():
        print(f".env already exists at {dst}")
        return
    if not src.exists():
        print(f".env.example not found at {src}")
        return
    shutil.copy(src, dst)
    print(f"Created .env from .env.example at {dst}")


def init_db() -> None:
    """Create every table from the models (local development)."""
    from telecare.core.database import Base, engine

    Base.metadata.create_all(bind=engine)
    print(f"Created tables: {', '.join(sorted(Base.metadata.tables))}")


# ---------------- Cron smoke test ----------------

def _check(response: httpx.Response) -> Tuple[bool, object]:
    """A call passes only on a 2xx status with a JSON body reporting success."""
    try:
        body = response.json()
    except ValueError:
        return False, response.text
    ok = response.is_success and isinstance(body, dict) and body.get("success") is True
    return ok, body


def run_cron_smoke_test(
    base_url: str,
    secret: Optional[str] = None,
    client: Optional[httpx.Client] = None,
) -> bool:
    """Hit both cron endpoints once and print what came back."""
    headers = {"X-Cron-Secret": secret} if secret else {}
    own_client = client is None
    client = client or httpx.Client(base_url=base_url.rstrip("/"), timeout=30.0)

    checks = [
        ("Process reminders", "POST", "/api/cron/process-reminders"),
        ("Cron health", "GET", "/api/cron/health"),
    ]
    passed = True
    try:
        for label, method, path in checks:
            print(f"{label}: {method} {path}")
            try:
                response = client.request(method, path, headers=headers)
            except httpx.HTTPError as e:
                print(f"  FAILED: {e}")
                passed = False
                continue

            ok, body = _check(response)
            rendered = json.dumps(body, indent=2) if isinstance(body, (dict, list)) else body
            print(f"  status={response.status_code}")
            print(f"  {rendered}")
            if not ok:
                print("  FAILED")
                passed = False
    finally:
        if own_client:
            client.close()

    print("Cron smoke test passed" if passed else "Cron smoke test failed")
    return passed


def cron_smoke() -> None:
    """Exit 0 only when both cron endpoints report success."""
    from telecare.core.config import settings

    base_url = _flag("base-url", settings.CRON_BASE_URL)
    secret = _flag("secret", settings.CRON_SECRET)
    sys.exit(0 if run_cron_smoke_test(base_url, secret=secret) else 1)


if __name__ == "__main__":
    # Allow running the helpers directly: python -m telecare.cli runserver
    if len(sys.argv) <= 1:
        print(__doc__)
        sys.exit(0)
    cmd = sys.argv[1]
    sys.argv.pop(1)
    if cmd == "runserver":
        runserver()
    elif cmd in ("run-tests", "tests", "test"):
        run_tests()
    elif cmd in ("migrate", "alembic"):
        run_migrations()
    elif cmd in ("init-env", "initenv"):
        init_env()
    elif cmd == "init-db":
        init_db()
    elif cmd == "cron-smoke":
        cron_smoke()
    else:
        print(f"Unknown command: {cmd}")
        sys.exit(1)
