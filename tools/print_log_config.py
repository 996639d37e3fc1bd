"""Print the logging configuration ``leadqueue.app_logging`` would apply."""

import json
import logging
import os
import sys

APP_LOG_FILE = "leadqueue.log"
ACCESS_LOG_FILE = "access.log"


def get_log_config():
    log_dir = os.path.abspath(os.getenv("LOG_DIR", "logs"))
    log_level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)

    return {
        "logger": "leadqueue",
        "log_level": logging.getLevelName(log_level),
        "log_json": os.getenv("LOG_JSON", "false").lower() == "true",
        "log_request_bodies": os.getenv("LOG_REQUEST_BODIES", "false").lower() == "true",
        "retention_days": int(os.getenv("LOG_RETENTION_DAYS", "7")),
        "rotate_utc": os.getenv("LOG_ROTATE_UTC", "false").lower() == "true",
        "files": {
            "app": os.path.join(log_dir, APP_LOG_FILE),
            "access": os.path.join(log_dir, ACCESS_LOG_FILE),
        },
    }


def main():
    sys.stdout.write(json.dumps(get_log_config(), indent=2) + "\n")


if __name__ == "__main__":
    main()
