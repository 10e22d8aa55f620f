"""Configuration for debug-capture services."""

from __future__ import annotations

from debug_capture.config.base import CaptureSettings, get_settings, lazy_settings, settings

__all__ = ['CaptureSettings', 'get_settings', 'lazy_settings', 'settings']
