"""Version 1 of the localizer gRPC API (package ``api.v1``)."""

from . import v1_pb2, v1_pb2_grpc
from .v1_pb2 import (
    CONSOLE_LEVEL_ERROR,
    CONSOLE_LEVEL_INFO,
    CONSOLE_LEVEL_UNSPECIFIED,
    CONSOLE_LEVEL_WARN,
    ConsoleLevel,
    ConsoleResponse,
    ExposeServiceRequest,
    StopExposeRequest,
)

__all__ = [
    "CONSOLE_LEVEL_ERROR",
    "CONSOLE_LEVEL_INFO",
    "CONSOLE_LEVEL_UNSPECIFIED",
    "CONSOLE_LEVEL_WARN",
    "ConsoleLevel",
    "ConsoleResponse",
    "ExposeServiceRequest",
    "StopExposeRequest",
    "v1_pb2",
    "v1_pb2_grpc",
]
