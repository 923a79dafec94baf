import json, logging, os, sys
from datetime import datetime, timezone

# Record attributes copied into the JSON line when a call passes them via extra=
CONTEXT_FIELDS = (
    "request_id", "route", "remote_addr",
    "token_id", "contract", "step", "reason", "error_code",
)

class JsonFormatter(logging.Formatter):
    def __init__(self, fields=CONTEXT_FIELDS):
        super().__init__()
        self.fields = fields

    def format(self, record):
        payload = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for k in self.fields:
            value = getattr(record, k, None)
            if value is not None:
                payload[k] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)

def configure_logging(stream=None):
    # Console handler (stderr for the CLI so stdout stays parseable)
    console_handler = logging.StreamHandler(stream or sys.stdout)
    console_handler.setFormatter(JsonFormatter())
    handlers = [console_handler]

    # Optional file handler for debugging (always append)
    log_file = os.getenv("PROVENANCE_LOG_FILE", "")
    if log_file:
        file_handler = logging.FileHandler(log_file, mode='a')
        file_handler.setFormatter(JsonFormatter())
        handlers.append(file_handler)

    root = logging.getLogger()
    # Allow DEBUG level via environment variable (default: INFO)
    log_level = os.getenv("PROVENANCE_LOG_LEVEL", "INFO").upper()
    root.setLevel(getattr(logging, log_level, logging.INFO))
    root.handlers = handlers
