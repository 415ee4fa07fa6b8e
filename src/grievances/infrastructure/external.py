"""
Grievance External Integrations
===============================

Classifier rules file support:
- YAML rules file loading and validation
- watchdog-based hot reload
"""

import threading
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from src.core import ConfigurationException
from src.grievances.domain import DEFAULT_RULE_SET, ClassifierRulesConfig, RuleSet
from src.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class RulesFileHandler(FileSystemEventHandler):
    """Watchdog event handler for classifier rules file changes."""

    def __init__(self, rules_manager: "ClassifierRulesManager", rules_path: Path):
        self.rules_manager = rules_manager
        self.rules_path = rules_path
        super().__init__()

    def on_modified(self, event):
        if event.is_directory:
            return
        if Path(event.src_path).resolve() == self.rules_path.resolve():
            logger.info(f"Classifier rules file changed: {event.src_path}")
            self.rules_manager.reload()


class ClassifierRulesManager:
    """
    Thread-safe holder of the active classifier rule set.

    Starts from the built-in rules; a YAML file, when present, replaces
    them and is watched for changes.
    """

    def __init__(self):
        self._rule_set: RuleSet = DEFAULT_RULE_SET
        self._lock = threading.Lock()
        self._path: Optional[Path] = None
        self._observer = None

    def load(self, path: Path) -> RuleSet:
        """
        Initial rules load.

        Raises:
            ConfigurationException: the file exists but is not a valid rules file
        """
        self._path = path
        rule_set = self._load_from_file(path)
        with self._lock:
            self._rule_set = rule_set
        return rule_set

    def _load_from_file(self, path: Path) -> RuleSet:
        if not path.exists():
            logger.info(f"Classifier rules file not found: {path}, using built-in rules")
            return DEFAULT_RULE_SET

        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
            return ClassifierRulesConfig(**data).to_rule_set()
        except (yaml.YAMLError, ValidationError, TypeError) as e:
            raise ConfigurationException(
                f"Invalid classifier rules file {path}: {e}",
                {"path": str(path)}
            ) from e

    def reload(self) -> bool:
        """Reload rules from file, keeping the current rules on failure."""
        if self._path is None:
            return False

        try:
            new_rule_set = self._load_from_file(self._path)
        except ConfigurationException as e:
            logger.error(f"Failed to reload classifier rules: {e}")
            return False

        with self._lock:
            self._rule_set = new_rule_set
        logger.info(
            "Classifier rules reloaded",
            extra={"rule_count": len(new_rule_set.rules)}
        )
        return True

    def start_watching(self) -> None:
        """
        Start watching the rules file for changes.

        Skipped when the file does not exist or inotify is unavailable.
        """
        if self._path is None:
            raise RuntimeError("Rules not loaded. Call load() first.")

        if not self._path.exists():
            return

        try:
            self._observer = Observer()
            handler = RulesFileHandler(self, self._path)
            self._observer.schedule(handler, str(self._path.parent), recursive=False)
            self._observer.start()
            logger.info(f"Started watching classifier rules file: {self._path}")
        except OSError as e:
            logger.warning(f"File watching not available, using static rules: {e}")
            self._observer = None

    def stop_watching(self) -> None:
        """Stop watching the rules file (safe to call even if not watching)."""
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None

    @property
    def is_watching(self) -> bool:
        return self._observer is not None

    @property
    def rule_set(self) -> RuleSet:
        """Current rule set; usable as a GrievanceClassifier rule provider."""
        with self._lock:
            return self._rule_set

    def get_rule_set(self) -> RuleSet:
        return self.rule_set
