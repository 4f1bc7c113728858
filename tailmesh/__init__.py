from tailmesh.errors import (
    BinaryNotFoundError,
    CommandFailedError,
    ErrorKind,
    ExecutionFailedError,
    InvalidAddressError,
    InvalidOutputError,
    NotConnectedError,
    NotInstalledError,
    TailscaleError,
)
from tailmesh.schemas.status import PeerEntry, SelfNode, StatusSnapshot
from tailmesh.services.decoder import decode_status
from tailmesh.services.process import CommandResult, run_command, run_command_async
from tailmesh.services.tailscale import ConnectionStatus, DeviceRecord, TailscaleService

__version__ = "0.1.0"

__all__ = [
    "BinaryNotFoundError",
    "CommandFailedError",
    "CommandResult",
    "ConnectionStatus",
    "DeviceRecord",
    "ErrorKind",
    "ExecutionFailedError",
    "InvalidAddressError",
    "InvalidOutputError",
    "NotConnectedError",
    "NotInstalledError",
    "PeerEntry",
    "SelfNode",
    "StatusSnapshot",
    "TailscaleError",
    "TailscaleService",
    "decode_status",
    "run_command",
    "run_command_async",
]
