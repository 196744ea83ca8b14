"""msc-tasks - developer tasks for libmediasoupclient.

Environment variables:
    REBUILD: "true" wipes and reconfigures the CMake build
    PATH_TO_LIBWEBRTC_SOURCES / PATH_TO_LIBWEBRTC_BINARY: libwebrtc paths
    TEST_ARGS: extra arguments for the test binary

Usage:
    msc-tasks test
"""

__version__ = "0.1.0"

from .app import main

__all__ = ["__version__", "main"]
