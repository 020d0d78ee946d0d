import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

COLORS = {
    'INFO': '\033[92m',     # Green
    'DEBUG': '\033[94m',    # Blue
    'WARNING': '\033[93m',  # Yellow
    'ERROR': '\033[91m',    # Red
    'CRITICAL': '\033[95m', # Magenta
    'RESET': '\033[0m',
}

LEVELS = {'DEBUG': 10, 'INFO': 20, 'WARNING': 30, 'ERROR': 40, 'CRITICAL': 50}

# Disabled until the driver calls configure()
ENABLED = False
MIN_LEVEL = LEVELS['INFO']
LOG_FILE: Optional[Path] = None

def configure(enabled: bool = True, level: str = "INFO", log_file: Optional[str] = None):
    global ENABLED, MIN_LEVEL, LOG_FILE
    ENABLED = enabled
    MIN_LEVEL = LEVELS.get(str(level).upper(), LEVELS['INFO'])
    LOG_FILE = Path(log_file) if log_file else None

def _log(level: str, message: str, to_console: bool = True, to_file: bool = True):
    if not ENABLED or LEVELS[level] < MIN_LEVEL:
        return

    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    color = COLORS.get(level, '')
    reset = COLORS['RESET']

    formatted = f"[{timestamp}] [{level}] {message}"

    if to_console:
        print(f"{color}{formatted}{reset}", file=sys.stderr if level in ["ERROR", "CRITICAL"] else sys.stdout)

    if to_file and LOG_FILE is not None:
        with LOG_FILE.open("a") as f:
            f.write(formatted + "\n")

def log_info(msg: str, to_console: bool = True, to_file: bool = True): _log("INFO", msg, to_console, to_file)
def log_debug(msg: str, to_console: bool = True, to_file: bool = True): _log("DEBUG", msg, to_console, to_file)
def log_warning(msg: str, to_console: bool = True, to_file: bool = True): _log("WARNING", msg, to_console, to_file)
def log_error(msg: str, to_console: bool = True, to_file: bool = True): _log("ERROR", msg, to_console, to_file)
def log_critical(msg: str, to_console: bool = True, to_file: bool = True): _log("CRITICAL", msg, to_console, to_file)
