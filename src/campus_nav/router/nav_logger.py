# nav_logger.py
# Diagnostics channel for routing outcomes.
# Appends one JSON line per routing request; only summary numbers are
# written, never the route geometry.

import json
import os
import logging
import threading
from datetime import datetime
from typing import List, Optional

from .models import RouteOutcome
from .nav_config import NavConfig

# Standard Python logger; configure at app entry point if needed
logger = logging.getLogger(__name__)


class DiagnosticsLog:
    """
    Records which routing strategy served each request and what failed first.

    Args:
        config: NavConfig instance for file paths and directories.
    """

    def __init__(self, config: Optional[NavConfig] = None) -> None:
        self.config = config or NavConfig()
        self._lock = threading.Lock()
        try:
            os.makedirs(self.config.log_dir, exist_ok=True)
        except OSError as e:
            logger.error(f"Cannot create diagnostics directory {self.config.log_dir}: {e}")

    @property
    def filepath(self) -> str:
        return self.config.diagnostics_filepath

    def record(self, outcome: RouteOutcome) -> bool:
        """
        Append a single routing outcome.

        Returns:
            True on success, False on failure (the failure is logged).
        """
        entry = {
            "timestamp": datetime.now().isoformat(),
            "source": outcome.source.value,
            "failures": [f.value for f in outcome.failures],
            "distance": outcome.route.distance,
            "duration": outcome.route.duration,
            "step_count": len(outcome.route.steps),
        }
        try:
            with self._lock, open(self.filepath, "a", encoding="utf-8") as f:
                f.write(json.dumps(entry, ensure_ascii=False) + "\n")
            return True
        except IOError as e:
            logger.error(f"Failed to write diagnostics event: {e}")
            return False

    def read_events(self) -> List[dict]:
        """
        Load every recorded event.

        Returns:
            Events in write order; an empty list if the file is missing.
        """
        try:
            with open(self.filepath, "r", encoding="utf-8") as f:
                return [json.loads(line) for line in f if line.strip()]
        except FileNotFoundError:
            return []
        except (IOError, ValueError) as e:
            logger.error(f"Failed to read diagnostics from {self.filepath}: {e}")
            return []
