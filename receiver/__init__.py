"""
QR Drop - Receiver Module

Samples a camera, decodes QR payloads, paces the sender through a
readiness indicator, and reassembles the transferred files.
"""

from .assembler import StreamAccumulator, TerminatorDetector
from .flow import Deduplicator, FlowGate
from .scanner import ScanLoop
from .scheduler import LoopScheduler, TkScheduler
from .session import SessionController, SessionState, AcceptOutcome, Session
from .export import FileExporter, ExportedResource, safe_filename
from .indicator import ConsoleIndicator, CallbackIndicator
from .capture import CameraCapture, VideoFileCapture, list_capture_devices
from .decoder import QRDecoder

__all__ = [
    'StreamAccumulator',
    'TerminatorDetector',
    'Deduplicator',
    'FlowGate',
    'ScanLoop',
    'LoopScheduler',
    'TkScheduler',
    'SessionController',
    'SessionState',
    'AcceptOutcome',
    'Session',
    'FileExporter',
    'ExportedResource',
    'safe_filename',
    'ConsoleIndicator',
    'CallbackIndicator',
    'CameraCapture',
    'VideoFileCapture',
    'list_capture_devices',
    'QRDecoder',
]
