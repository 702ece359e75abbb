import json
import os
import sys
from datetime import datetime
from enum import Enum
from typing import Optional

class LogLevel(Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    SUCCESS = "SUCCESS"

class Colors:
    """ANSI color codes for console output"""
    RESET = '\033[0m'
    BOLD = '\033[1m'
    DIM = '\033[2m'

    BRIGHT_BLACK = '\033[90m'
    BRIGHT_RED = '\033[91m'
    BRIGHT_GREEN = '\033[92m'
    BRIGHT_YELLOW = '\033[93m'
    BRIGHT_BLUE = '\033[94m'
    BRIGHT_CYAN = '\033[96m'
    WHITE = '\033[37m'

class CoachFitLogger:
    """Console logger for CoachFit services: one line per business event, tagged with service and context"""

    # Extra key=value payloads are clipped to keep log lines on one screen row
    MAX_VALUE_LENGTH = 100

    def __init__(self, service_name: str = "COACHFIT", enable_colors: Optional[bool] = None):
        self.service_name = service_name.upper()
        if enable_colors is None:
            enable_colors = sys.stdout.isatty() and os.getenv("NO_COLOR") is None
        self.enable_colors = enable_colors

        self.level_colors = {
            LogLevel.DEBUG: Colors.BRIGHT_CYAN,
            LogLevel.INFO: Colors.BRIGHT_BLUE,
            LogLevel.WARNING: Colors.BRIGHT_YELLOW,
            LogLevel.ERROR: Colors.BRIGHT_RED,
            LogLevel.SUCCESS: Colors.BRIGHT_GREEN,
        }

    def _get_timestamp(self) -> str:
        return datetime.now().strftime("%H:%M:%S.%f")[:-3]

    def _colorize(self, text: str, color: str) -> str:
        if not self.enable_colors:
            return text
        return f"{color}{text}{Colors.RESET}"

    def _service_tag(self, context: Optional[str]) -> str:
        service_context = self.service_name
        if context:
            service_context += f"/{context.upper()}"
        return self._colorize(f"[{service_context}]", Colors.BRIGHT_BLACK)

    def _format_value(self, value) -> str:
        if isinstance(value, (dict, list)):
            value_str = json.dumps(value, default=str, separators=(',', ':'))
        else:
            value_str = str(value)
        if len(value_str) > self.MAX_VALUE_LENGTH:
            value_str = value_str[:self.MAX_VALUE_LENGTH] + "..."
        return value_str

    def _log(self, level: LogLevel, message: str, context: Optional[str] = None, **kwargs):
        # Format: [TIMESTAMP] [SERVICE/CONTEXT] [LEVEL] Message | key=value
        level_color = self.level_colors.get(level, Colors.WHITE)
        line = " ".join([
            self._colorize(f"[{self._get_timestamp()}]", Colors.DIM),
            self._service_tag(context),
            self._colorize(f"[{level.value}]", level_color + Colors.BOLD),
            message,
        ])

        if kwargs:
            extras = ", ".join(f"{key}={self._format_value(value)}" for key, value in kwargs.items())
            line += self._colorize(f" | {extras}", Colors.DIM)

        print(line, file=sys.stdout)
        sys.stdout.flush()

    def debug(self, message: str, context: Optional[str] = None, **kwargs):
        self._log(LogLevel.DEBUG, message, context, **kwargs)

    def info(self, message: str, context: Optional[str] = None, **kwargs):
        self._log(LogLevel.INFO, message, context, **kwargs)

    def warning(self, message: str, context: Optional[str] = None, **kwargs):
        self._log(LogLevel.WARNING, message, context, **kwargs)

    def error(self, message: str, context: Optional[str] = None, **kwargs):
        self._log(LogLevel.ERROR, message, context, **kwargs)

    def success(self, message: str, context: Optional[str] = None, **kwargs):
        self._log(LogLevel.SUCCESS, message, context, **kwargs)

    def banner(self, message: str, context: Optional[str] = None, char: str = "═", width: int = 60):
        """Print a centred banner, used around startup and shutdown"""
        content = f" {message} "
        if len(content) < width - 4:
            padding = (width - len(content)) // 2
            content = char * padding + content + char * (width - len(content) - padding)

        timestamp_text = self._colorize(f"[{self._get_timestamp()}]", Colors.DIM)
        banner_text = self._colorize(content, Colors.BRIGHT_CYAN + Colors.BOLD)
        print(f"{timestamp_text} {self._service_tag(context)} {banner_text}", file=sys.stdout)
        sys.stdout.flush()


# Global logger instances for different services
auth_logger = CoachFitLogger("AUTH")
scheduling_logger = CoachFitLogger("SCHEDULING")
messaging_logger = CoachFitLogger("MESSAGING")
nutrition_logger = CoachFitLogger("NUTRITION")
training_logger = CoachFitLogger("TRAINING")
db_logger = CoachFitLogger("DATABASE")
api_logger = CoachFitLogger("API")

def get_logger(service_name: str) -> CoachFitLogger:
    """Get a logger instance for a specific service"""
    return CoachFitLogger(service_name)
