"""Sec1 SAST scan client, polling and threshold gating."""

from sec1_sast.scanner.poll_loop import PollLoop
from sec1_sast.scanner.scan_client import ScanClient
from sec1_sast.scanner.scan_orchestrator import ScanOrchestrator
from sec1_sast.scanner.threshold_evaluator import ThresholdEvaluator

__all__ = [
    "PollLoop",
    "ScanClient",
    "ScanOrchestrator",
    "ThresholdEvaluator",
]
