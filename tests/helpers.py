"""Scripted command runner and status document builders used across the suite."""

import asyncio
import json
from typing import Dict, Iterable, List, Optional, Tuple, Union

from tailmesh.errors import CommandFailedError
from tailmesh.services.process import CommandResult

Response = Union[CommandResult, BaseException]


def ok(stdout: str) -> CommandResult:
    return CommandResult(exit_code=0, stdout=stdout, stderr="")


def failed(stderr: str, exit_code: int = 1) -> CommandResult:
    return CommandResult(exit_code=exit_code, stdout="", stderr=stderr)


def peer(
    host_name: str,
    *,
    online: bool = True,
    ips: Optional[List[str]] = None,
    os: str = "linux",
) -> dict:
    return {
        "HostName": host_name,
        "Online": online,
        "TailscaleIPs": ["100.64.1.2"] if ips is None else ips,
        "OS": os,
    }


def status_document(
    *,
    self_key: str = "key:self",
    self_host: str = "my-device.ts.net",
    peers: Optional[Dict[str, dict]] = None,
) -> dict:
    if peers is None:
        peers = {self_key: peer(self_host, os="macOS")}
    return {
        "Self": {"PublicKey": self_key, "HostName": self_host},
        "Peer": peers,
    }


def status_json(**kwargs) -> str:
    return json.dumps(status_document(**kwargs))


class FakeRunner:
    """Replays canned results keyed by the joined argument vector."""

    def __init__(self) -> None:
        self.responses: Dict[str, Response] = {}
        self.calls: List[Tuple[str, Tuple[str, ...], int, Optional[float]]] = []

    def set_response(self, command: str, response: Response) -> None:
        self.responses[command] = response

    async def __call__(
        self,
        program: str,
        args: Iterable[str],
        *,
        output_limit_bytes: int,
        timeout_seconds: Optional[float],
    ) -> CommandResult:
        arg_tuple = tuple(args)
        self.calls.append((program, arg_tuple, output_limit_bytes, timeout_seconds))
        await asyncio.sleep(0)
        key = " ".join(arg_tuple)
        response = self.responses.get(key)
        if response is None:
            raise CommandFailedError(f"No mock configured for: {key}")
        if isinstance(response, BaseException):
            raise response
        return response


