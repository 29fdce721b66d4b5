"""
HealthScribe Configuration Module
Centralized configuration for the project-health pipeline.

Module-level constants hold the defaults. The pipeline itself never reads
them at call time: load_settings() folds defaults, the YAML settings file
and explicit overrides into a PipelineSettings object that is passed into
the orchestrator.
"""

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

# Debug Mode Configuration
DEBUG_MODE = os.environ.get('DEBUG', 'false').lower() == 'true'

# Application Paths
APP_NAME = "HealthScribe"
APPDATA_DIR = Path(os.environ.get('APPDATA', os.path.expanduser('~/.config'))) / APP_NAME
LOGS_DIR = APPDATA_DIR / "logs"

# Ensure directories exist
for directory in [APPDATA_DIR, LOGS_DIR]:
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError:
        pass  # Read-only home; file logging is skipped

# Oracle Configuration
OLLAMA_API_BASE = os.environ.get('OLLAMA_HOST', "http://localhost:11434")
OLLAMA_MODEL_NAME = os.environ.get('HEALTHSCRIBE_MODEL', "gemma3:1b")
OLLAMA_TIMEOUT_SECONDS = 300  # Per oracle call
OLLAMA_TEMPERATURE = 0.0      # Deterministic extraction
OLLAMA_CONTEXT_WINDOW = 4096  # Tokens; room for a 2000-char chunk plus instructions

# Chunking
# ~2000 characters keeps a chunk plus the instruction well inside the context window
DEFAULT_CHUNK_CHARS = 2000
MAX_CHUNKS_PER_SOURCE = None  # No cap unless configured

# Parallel Processing
# One worker per data source; capped at 4 to bound oracle load
PARALLEL_MAX_WORKERS = min(os.cpu_count() or 4, 4)

# Caller-level deadline for a whole report request (None = wait indefinitely)
REQUEST_TIMEOUT_SECONDS = None

# Settings file
SETTINGS_FILE = Path(__file__).parent.parent / "config" / "pipeline.yaml"

# Logging Configuration
LOG_FILE = LOGS_DIR / "processing.log"
DEBUG_FLOW_FILE = LOGS_DIR / "debug_flow.txt"
LOG_FORMAT = "[%(levelname)s %(asctime)s] %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"


@dataclass(frozen=True)
class PipelineSettings:
    """
    Explicit configuration for one pipeline instance.

    Attributes:
        api_base: Base URL of the Ollama service
        model_name: Model identifier sent with every oracle call
        oracle_timeout_seconds: Timeout for a single oracle call
        temperature: Sampling temperature for oracle calls
        context_window: num_ctx passed to Ollama
        chunk_chars: Maximum chunk size in characters
        max_chunks_per_source: Optional cost-control cap on chunks per source
        max_parallel_sources: Worker count for per-source extraction
        request_timeout_seconds: Optional deadline for a whole analyze() call
    """

    api_base: str = OLLAMA_API_BASE
    model_name: str = OLLAMA_MODEL_NAME
    oracle_timeout_seconds: float = OLLAMA_TIMEOUT_SECONDS
    temperature: float = OLLAMA_TEMPERATURE
    context_window: int = OLLAMA_CONTEXT_WINDOW
    chunk_chars: int = DEFAULT_CHUNK_CHARS
    max_chunks_per_source: int | None = MAX_CHUNKS_PER_SOURCE
    max_parallel_sources: int = PARALLEL_MAX_WORKERS
    request_timeout_seconds: float | None = REQUEST_TIMEOUT_SECONDS

    def validate(self) -> "PipelineSettings":
        """
        Check value ranges.

        Returns:
            self, so calls can be chained

        Raises:
            ValueError: If any size, count or timeout is out of range
        """
        if self.chunk_chars <= 0:
            raise ValueError(f"chunk_chars must be positive, got {self.chunk_chars}")
        if self.max_chunks_per_source is not None and self.max_chunks_per_source <= 0:
            raise ValueError(
                f"max_chunks_per_source must be positive, got {self.max_chunks_per_source}"
            )
        if self.max_parallel_sources <= 0:
            raise ValueError(
                f"max_parallel_sources must be positive, got {self.max_parallel_sources}"
            )
        if self.oracle_timeout_seconds <= 0:
            raise ValueError("oracle_timeout_seconds must be positive")
        if self.request_timeout_seconds is not None and self.request_timeout_seconds <= 0:
            raise ValueError("request_timeout_seconds must be positive")
        if not self.model_name:
            raise ValueError("model_name must not be empty")
        return self


_SETTING_NAMES = {f.name for f in fields(PipelineSettings)}


def _filter_comments(data: Any) -> Any:
    """Recursively remove keys starting with '_' (comments)."""
    if isinstance(data, dict):
        return {
            key: _filter_comments(value)
            for key, value in data.items()
            if not str(key).startswith('_')
        }
    if isinstance(data, list):
        return [_filter_comments(item) for item in data]
    return data


def _read_settings_file(path: Path) -> dict:
    """
    Read the 'pipeline' section of a YAML settings file.

    Missing or malformed files yield an empty dict so defaults apply.
    """
    from healthscribe.logging_config import debug_log

    try:
        with open(path, encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        debug_log(f"[Config] Settings file not found at {path}. Using defaults.")
        return {}
    except yaml.YAMLError as e:
        debug_log(f"[Config] ERROR: Failed to parse settings file {path}: {e}")
        return {}

    if not isinstance(data, dict):
        debug_log(f"[Config] WARNING: {path} is not a mapping. Using defaults.")
        return {}

    section = _filter_comments(data.get('pipeline', {}) or {})
    unknown = set(section) - _SETTING_NAMES
    if unknown:
        debug_log(f"[Config] WARNING: Ignoring unknown settings: {sorted(unknown)}")
    return {key: value for key, value in section.items() if key in _SETTING_NAMES}


def load_settings(
    path: Path | str | None = None,
    overrides: dict[str, Any] | None = None,
) -> PipelineSettings:
    """
    Build PipelineSettings from defaults, a YAML file and explicit overrides.

    Args:
        path: Settings file (defaults to config/pipeline.yaml)
        overrides: Values that win over the file; None values are ignored

    Returns:
        Validated PipelineSettings

    Raises:
        ValueError: If the merged settings are out of range
    """
    settings_path = Path(path) if path is not None else SETTINGS_FILE
    values = _read_settings_file(settings_path)

    if overrides:
        for key, value in overrides.items():
            if key not in _SETTING_NAMES:
                raise ValueError(f"Unknown setting: {key}")
            if value is not None:
                values[key] = value

    return replace(PipelineSettings(), **values).validate()
