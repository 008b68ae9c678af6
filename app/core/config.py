import os
from dataclasses import dataclass
from datetime import timedelta

# Database Configuration
# Uses default credentials for local Docker Compose setup
DB_URL = os.getenv("DATABASE_URL", "postgres://user:password@db:5432/bud_db")

# Application Metadata
PROJECT_NAME = os.getenv("PROJECT_NAME", "Bud Back Office")
VERSION = "1.0.0"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Outbox Processor Configuration
OUTBOX_PROCESSOR_ENABLED = os.getenv("OUTBOX_PROCESSOR_ENABLED", "true").lower() in ("1", "true", "yes")
POLLING_INTERVAL = float(os.getenv("OUTBOX_POLLING_INTERVAL", 5)) # Processor checks for due envelopes every N seconds
BATCH_SIZE = int(os.getenv("OUTBOX_BATCH_SIZE", 100)) # How many envelopes to claim per tick
MAX_ATTEMPTS = int(os.getenv("OUTBOX_MAX_ATTEMPTS", 5)) # Failed deliveries before dead-lettering
BASE_RETRY_DELAY = float(os.getenv("OUTBOX_BASE_RETRY_DELAY", 5)) # Seconds, doubled on each attempt
MAX_RETRY_DELAY = float(os.getenv("OUTBOX_MAX_RETRY_DELAY", 300)) # Backoff ceiling in seconds
CLAIM_LEASE = float(os.getenv("OUTBOX_CLAIM_LEASE", 60)) # Seconds a claimed envelope stays hidden from other processors

# Outbox Health Check Configuration
MAX_DEAD_LETTERS = int(os.getenv("OUTBOX_MAX_DEAD_LETTERS", 0))
MAX_OLDEST_PENDING_AGE = float(os.getenv("OUTBOX_MAX_OLDEST_PENDING_AGE", 900))


@dataclass(frozen=True)
class OutboxProcessingOptions:
    """Knobs for the outbox processor and its retry policy."""
    batch_size: int = BATCH_SIZE
    polling_interval: float = POLLING_INTERVAL
    max_attempts: int = MAX_ATTEMPTS
    base_retry_delay: timedelta = timedelta(seconds=BASE_RETRY_DELAY)
    max_retry_delay: timedelta = timedelta(seconds=MAX_RETRY_DELAY)
    claim_lease: timedelta = timedelta(seconds=CLAIM_LEASE)
    enabled: bool = OUTBOX_PROCESSOR_ENABLED


@dataclass(frozen=True)
class OutboxHealthCheckOptions:
    """Thresholds used to classify outbox health."""
    max_dead_letters: int = MAX_DEAD_LETTERS
    max_oldest_pending_age: timedelta = timedelta(seconds=MAX_OLDEST_PENDING_AGE)
