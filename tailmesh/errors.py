from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tailmesh.services.process import CommandResult

_STATUS_HINT = (
    "Check that Tailscale is running and you are logged in. Run 'tailscale status' in Terminal."
)
_CONNECT_HINT = "Ensure Tailscale is connected to a network. Run 'tailscale up' to connect."


class ErrorKind(str, Enum):
    COMMAND_FAILED = "command_failed"
    EXECUTION_FAILED = "execution_failed"
    INVALID_ADDRESS = "invalid_address"
    INVALID_OUTPUT = "invalid_output"
    NOT_INSTALLED = "not_installed"
    NOT_CONNECTED = "not_connected"


class TailscaleError(RuntimeError):
    kind: ErrorKind
    remediation: str = ""

    def __init__(self, description: str) -> None:
        super().__init__(description)
        self.description = description


class CommandFailedError(TailscaleError):
    kind = ErrorKind.COMMAND_FAILED
    remediation = _STATUS_HINT

    def __init__(self, detail: str) -> None:
        super().__init__(f"Tailscale command failed: {detail}")
        self.detail = detail


class ExecutionFailedError(TailscaleError):
    kind = ErrorKind.EXECUTION_FAILED
    remediation = _STATUS_HINT

    def __init__(self, detail: str) -> None:
        super().__init__(f"Failed to execute Tailscale command: {detail}")
        self.detail = detail


class BinaryNotFoundError(ExecutionFailedError):
    def __init__(self, path: str, detail: str = "") -> None:
        super().__init__(detail or f"binary not found: {path}")
        self.path = path


class InvalidAddressError(TailscaleError):
    kind = ErrorKind.INVALID_ADDRESS
    remediation = _CONNECT_HINT

    def __init__(self, value: str) -> None:
        super().__init__(f"Invalid Tailscale IP address: {value}")
        self.value = value


class InvalidOutputError(TailscaleError):
    kind = ErrorKind.INVALID_OUTPUT
    remediation = "This may be a bug. Please report it with the Tailscale version you're using."

    def __init__(self, detail: str = "") -> None:
        super().__init__("Invalid output from Tailscale command")
        self.detail = detail


class NotInstalledError(TailscaleError):
    kind = ErrorKind.NOT_INSTALLED
    remediation = "Install Tailscale from https://tailscale.com/download"

    def __init__(self) -> None:
        super().__init__("Tailscale is not installed on this system")


class NotConnectedError(TailscaleError):
    kind = ErrorKind.NOT_CONNECTED
    remediation = "Run 'tailscale up' to connect to your Tailscale network"

    def __init__(self) -> None:
        super().__init__("Tailscale is not connected to a network")


def classify_exit(result: "CommandResult") -> CommandFailedError:
    detail = result.stderr or result.stdout.strip() or f"exit_{result.exit_code}"
    return CommandFailedError(detail)
