"""Static configuration for httpbackup.

Sites, interval, and backup folder are user-editable and live in a JSON
file that is re-read at the start of every cycle (see
adapters.json_config_store). This module only resolves where that file is
and holds the fixed constants of the engine.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

from core.config import DEFAULT_INTERVAL_MINUTES

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# A project-level .env may point HTTPBACKUP_CONFIG at a scratch config while
# developing; installed copies use the well-known location below.
load_dotenv(os.path.join(PROJECT_ROOT, ".env"), override=False)

APP_DIR = Path.home() / ".httpbackup"

CONFIG_PATH = Path(os.environ.get("HTTPBACKUP_CONFIG", APP_DIR / "config.json")).expanduser()

# Baseline written on first start when no config file exists yet, along with
# DEFAULT_INTERVAL_MINUTES.
DEFAULT_BACKUP_FOLDER = str(Path.home() / "Backups" / "HttpBackup")

# How long the scheduler waits before retrying a config file it could not load.
CONFIG_RETRY_SECONDS = 30

# Default log file, relative paths in the config are resolved against APP_DIR.
DEFAULT_LOG_PATH = "logs/httpbackup.log"
