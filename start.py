#!/usr/bin/env python3
"""
Process launcher for a Launchpad deployment.

SERVICE_TYPE=web runs the API under gunicorn with uvicorn workers.
SERVICE_TYPE=worker runs the RQ generation worker; only needed when
DISPATCH_BACKEND=rq, since the http backend executes jobs in the web
process.
"""

import os
import sys

# Generation jobs run for minutes inside background tasks
WEB_TIMEOUT_SECONDS = "900"

COMMANDS = {
    "web": [
        "gunicorn", "launchpad.api.main:app",
        "--workers", "2",
        "--worker-class", "uvicorn.workers.UvicornWorker",
        "--bind", f"0.0.0.0:{os.environ.get('PORT', '8080')}",
        "--timeout", WEB_TIMEOUT_SECONDS,
        "--graceful-timeout", "120",
    ],
    "worker": [sys.executable, "-m", "launchpad.queue.run_worker"],
}


def main() -> None:
    service = os.environ.get("SERVICE_TYPE", "web")
    cmd = COMMANDS.get(service)
    if cmd is None:
        sys.exit(f"Unknown SERVICE_TYPE {service!r}; expected one of: {', '.join(COMMANDS)}")

    print(f"[launchpad] {service}: {' '.join(cmd)}", flush=True)
    os.execvp(cmd[0], cmd)


if __name__ == "__main__":
    main()
