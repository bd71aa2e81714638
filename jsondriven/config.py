import os

# Logging
LOG_LEVEL = os.getenv("JSONDRIVEN_LOG_LEVEL", "INFO").upper()

# Metrics
METRICS_ENABLED = os.getenv("JSONDRIVEN_METRICS_ENABLED", "true").lower() == "true"

# Default call shape for the document runner: sync | async
DEFAULT_EXECUTION_MODE = os.getenv("JSONDRIVEN_EXECUTION_MODE", "sync").lower()

# Top-level fields every test document may carry
BASE_DOCUMENT_FIELDS = ("name", "arguments", "result")
