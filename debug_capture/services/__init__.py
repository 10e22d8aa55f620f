"""Service layer for capture operations."""

from debug_capture.services.controller import CaptureController
from debug_capture.services.listener import CaptureListener, create_app
from debug_capture.services.log_reader import read_records
from debug_capture.services.log_writer import DurableLogWriter, PeriodicFlusher
from debug_capture.services.ports import EPHEMERAL_PORT, PortStore, resolve_port

__all__ = [
    'CaptureController',
    'CaptureListener',
    'create_app',
    'read_records',
    'DurableLogWriter',
    'PeriodicFlusher',
    'EPHEMERAL_PORT',
    'PortStore',
    'resolve_port',
]
