#!/usr/bin/env python3
"""
Base Component Class for Discovery-Processing-Housekeeping Pattern

Components split their work into three phases:

- discover: examine the current environment without making changes
- process: perform the changes
- housekeep: verify the result and clean up

BaseComponent owns the bookkeeping around those phases (timestamps, status,
logging, error capture) so that subclasses only implement the hooks
``_discover``, ``_process`` and ``_housekeep``.
"""

import datetime
import json
import logging
import traceback
import uuid
from typing import Any, Callable, Dict, List, Literal, Optional, TypedDict

Phase = Literal["discover", "process", "housekeep"]
ALL_PHASES: List[Phase] = ["discover", "process", "housekeep"]


class ComponentConfig(TypedDict, total=False):
    """TypedDict for component configuration."""
    component_id: str
    log_level: str


class TimestampData(TypedDict):
    """TypedDict for tracking execution timestamps."""
    start: Optional[str]
    discover_start: Optional[str]
    discover_end: Optional[str]
    process_start: Optional[str]
    process_end: Optional[str]
    housekeep_start: Optional[str]
    housekeep_end: Optional[str]
    end: Optional[str]


class StatusData(TypedDict):
    """TypedDict for component execution status."""
    success: bool
    error: Optional[str]
    message: Optional[str]


class PhaseResults(TypedDict, total=False):
    """TypedDict for the results returned by execute()."""
    discovery: Dict[str, Any]
    processing: Dict[str, Any]
    housekeeping: Dict[str, Any]
    error: Optional[str]
    traceback: Optional[str]
    metadata: Dict[str, Any]


class ExecutionSummary(TypedDict):
    """TypedDict for execution summary."""
    component_id: str
    component_name: str
    status: StatusData
    timestamps: TimestampData
    phases_executed: Dict[str, bool]


def _now() -> str:
    return datetime.datetime.now().isoformat()


class BaseComponent:
    """
    Base class for components implementing discover/process/housekeep.

    Subclasses override the ``_discover``, ``_process`` and ``_housekeep``
    hooks. The public ``discover``/``process``/``housekeep`` methods record
    timestamps and status around the hook and re-raise any failure;
    ``execute`` runs several phases and captures the failure in its results.
    """

    def __init__(self, config: ComponentConfig, logger: Optional[logging.Logger] = None) -> None:
        self.config = config
        self.component_id: str = config.get('component_id', str(uuid.uuid4()))
        self.component_name: str = self.__class__.__name__
        self.logger: logging.Logger = logger or self._setup_logger()

        self.discovery_results: Dict[str, Any] = {}
        self.processing_results: Dict[str, Any] = {}
        self.housekeeping_results: Dict[str, Any] = {}

        self.phases_executed: Dict[str, bool] = {phase: False for phase in ALL_PHASES}
        self.timestamps: TimestampData = {
            'start': None,
            'discover_start': None,
            'discover_end': None,
            'process_start': None,
            'process_end': None,
            'housekeep_start': None,
            'housekeep_end': None,
            'end': None
        }
        self.status: StatusData = {
            'success': False,
            'error': None,
            'message': None
        }

        self.logger.info(f"Initialized {self.component_name} (ID: {self.component_id})")

    def _setup_logger(self) -> logging.Logger:
        """
        Set up a console logger named after the component.

        Returns:
            A configured logger instance
        """
        logger = logging.getLogger(self.component_name)
        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            logger.addHandler(handler)
            logger.setLevel(self.config.get('log_level', 'INFO').upper())
        return logger

    def _run_phase(self, phase: Phase, hook: Callable[[], Dict[str, Any]]) -> Dict[str, Any]:
        self.timestamps[f'{phase}_start'] = _now()
        self.logger.info(f"Starting {phase} phase for {self.component_name}")

        try:
            results = hook()
        except Exception as e:
            self.logger.error(f"Error during {phase} phase: {str(e)}")
            self.logger.debug(traceback.format_exc())
            self.status['success'] = False
            self.status['error'] = str(e)
            self.status['message'] = f"{phase.capitalize()} phase failed: {str(e)}"
            self.timestamps[f'{phase}_end'] = _now()
            raise

        self.phases_executed[phase] = True
        self.timestamps[f'{phase}_end'] = _now()
        self.logger.info(f"{phase.capitalize()} phase completed for {self.component_name}")
        return results

    def _discover(self) -> Dict[str, Any]:
        self.logger.warning(f"Default discovery implementation called for {self.component_name}")
        return self.discovery_results

    def _process(self) -> Dict[str, Any]:
        self.logger.warning(f"Default processing implementation called for {self.component_name}")
        return self.processing_results

    def _housekeep(self) -> Dict[str, Any]:
        self.logger.warning(f"Default housekeeping implementation called for {self.component_name}")
        return self.housekeeping_results

    def discover(self) -> Dict[str, Any]:
        """Discovery phase: examine the environment without making changes."""
        return self._run_phase("discover", self._discover)

    def process(self) -> Dict[str, Any]:
        """Processing phase: perform the core work of the component."""
        if not self.phases_executed['discover']:
            self.logger.warning("Processing without prior discovery may lead to unexpected results")
        return self._run_phase("process", self._process)

    def housekeep(self) -> Dict[str, Any]:
        """Housekeeping phase: verify and finalize the component's work."""
        if not self.phases_executed['process']:
            self.logger.warning("Housekeeping without prior processing may lead to unexpected results")
        return self._run_phase("housekeep", self._housekeep)

    def execute(self, phases: Optional[List[Phase]] = None) -> PhaseResults:
        """
        Execute the component lifecycle phases.

        A failing phase stops execution; its error and traceback are returned
        in the results rather than raised.

        Args:
            phases: Phases to execute (default: all phases)

        Returns:
            Dictionary with the results of all executed phases
        """
        phases = phases or ALL_PHASES
        self.timestamps['start'] = _now()
        self.logger.info(f"Executing {self.component_name} with phases: {', '.join(phases)}")

        results: PhaseResults = {}

        try:
            if "discover" in phases:
                results["discovery"] = self.discover()

            if "process" in phases:
                results["processing"] = self.process()

            if "housekeep" in phases:
                results["housekeeping"] = self.housekeep()

            self.status['success'] = True
            self.status['message'] = "Execution completed successfully"

        except Exception as e:
            results["error"] = str(e)
            results["traceback"] = traceback.format_exc()

        self.timestamps['end'] = _now()
        results["metadata"] = {
            "component_id": self.component_id,
            "component_name": self.component_name,
            "timestamps": self.timestamps,
            "phases_executed": self.phases_executed,
            "status": self.status
        }

        self.logger.info(f"Execution of {self.component_name} completed with status: {self.status['success']}")
        return results

    def get_execution_summary(self) -> ExecutionSummary:
        return {
            "component_id": self.component_id,
            "component_name": self.component_name,
            "status": self.status,
            "timestamps": self.timestamps,
            "phases_executed": self.phases_executed
        }

    def to_json(self) -> str:
        """
        Convert component results to a JSON string.

        Returns:
            JSON string representation of the component results
        """
        results = {
            **self.get_execution_summary(),
            "discovery_results": self.discovery_results,
            "processing_results": self.processing_results,
            "housekeeping_results": self.housekeeping_results
        }
        return json.dumps(results, indent=2)
