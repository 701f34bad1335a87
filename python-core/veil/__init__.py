# Veil Core Module
# Input analysis and off-thread processing for the tag steganography codec
#
# This package provides the main interfaces for:
# - Key text parsing (keys)
# - Input classification (analyzer)
# - Worker message envelopes (messages)
# - The processing worker and its caller-side service (worker, service)
#
# Version: 1.0.0

from .analyzer import AnalysisResult, InputAnalyzer, KeyData, PayloadKind, analyze_input
from .keys import KeyParseResult, format_key_input, parse_key_input
from .messages import TaskPriority, TaskType, WorkerRequest, WorkerResponse
from .service import WorkerService, WorkerTaskError, WorkerTerminatedError, get_worker_service
from .worker import ProcessingWorker, WorkerConfig

__all__ = [
    # Analysis
    'AnalysisResult',
    'InputAnalyzer',
    'KeyData',
    'PayloadKind',
    'analyze_input',
    # Keys
    'KeyParseResult',
    'format_key_input',
    'parse_key_input',
    # Execution boundary
    'ProcessingWorker',
    'TaskPriority',
    'TaskType',
    'WorkerConfig',
    'WorkerRequest',
    'WorkerResponse',
    'WorkerService',
    'WorkerTaskError',
    'WorkerTerminatedError',
    'get_worker_service',
]

__version__ = "1.0.0"
