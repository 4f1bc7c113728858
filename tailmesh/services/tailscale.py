from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from time import perf_counter
from typing import Awaitable, Iterable, List, Optional, Protocol

from tailmesh.config import Settings, get_settings
from tailmesh.errors import InvalidAddressError, TailscaleError, classify_exit
from tailmesh.logger import BoundLogger, get_logger
from tailmesh.metrics import observe_tailscale_command, record_tailscale_operation, track_in_flight
from tailmesh.schemas.status import StatusSnapshot
from tailmesh.services.decoder import decode_status
from tailmesh.services.process import CommandResult, run_command_async

MESH_ADDRESS_PREFIX = "100."
ADDRESS_ARGS = ("ip", "-4")
STATUS_ARGS = ("status", "--json")


class CommandRunner(Protocol):
    def __call__(
        self,
        program: str,
        args: Iterable[str],
        *,
        output_limit_bytes: int,
        timeout_seconds: Optional[float],
    ) -> Awaitable[CommandResult]:
        ...


@dataclass(frozen=True)
class ConnectionStatus:
    hostname: str
    ip: str
    online: bool
    peer_count: int


@dataclass(frozen=True)
class DeviceRecord:
    id: str
    hostname: str
    ip: str
    online: bool
    os: str


def project_status(snapshot: StatusSnapshot) -> ConnectionStatus:
    self_peer = snapshot.self_peer
    return ConnectionStatus(
        hostname=snapshot.self_node.host_name,
        ip=self_peer.first_address if self_peer is not None else "",
        online=self_peer.online if self_peer is not None else False,
        # the self entry is assumed present; not adjusted when it is missing
        peer_count=len(snapshot.peers) - 1,
    )


def project_devices(snapshot: StatusSnapshot) -> List[DeviceRecord]:
    self_key = snapshot.self_node.public_key
    return [
        DeviceRecord(
            id=public_key,
            hostname=peer.host_name,
            ip=peer.first_address,
            online=peer.online,
            os=peer.os,
        )
        for public_key, peer in snapshot.peers.items()
        if public_key != self_key
    ]


def validate_address(raw: str) -> str:
    address = raw.strip()
    if not address or not address.startswith(MESH_ADDRESS_PREFIX):
        raise InvalidAddressError(address)
    return address


class TailscaleService:
    """Async facade over the ``tailscale`` CLI.

    Holds only immutable configuration, so one instance can be shared by any
    number of concurrent tasks. Each call spawns exactly one child process
    (``is_available`` spawns none) and nothing is cached between calls.
    """

    def __init__(
        self,
        tailscale_path: Optional[str] = None,
        *,
        settings: Optional[Settings] = None,
        runner: Optional[CommandRunner] = None,
        logger: Optional[BoundLogger] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._path = tailscale_path or self._settings.tailscale_path
        self._fallback_path = self._settings.tailscale_fallback_path
        self._runner: CommandRunner = runner or run_command_async
        self._logger = (logger or get_logger("services.tailscale")).bind(binary=self._path)

    @property
    def tailscale_path(self) -> str:
        return self._path

    async def get_current_address(self) -> str:
        self._logger.debug("tailscale.address.start", "Getting Tailscale IP address")
        output = await self._execute(ADDRESS_ARGS, action="ip")
        address = validate_address(output)
        self._logger.info("tailscale.address.ok", "Tailscale IP retrieved", ip=address)
        return address

    async def get_hostname(self) -> str:
        status = await self.get_status()
        return status.hostname

    async def get_status(self) -> ConnectionStatus:
        async with self._logger.operation("tailscale.status", "Getting Tailscale status") as op:
            snapshot = await self._fetch_snapshot(action="status")
            if snapshot.self_peer is None:
                op.step_warning(
                    "self_peer",
                    "Self node missing from peer map",
                    public_key=snapshot.self_node.public_key,
                )
            status = project_status(snapshot)
            op.step(
                "project",
                "Tailscale status retrieved",
                hostname=status.hostname,
                ip=status.ip,
                online=status.online,
            )
            return status

    async def is_available(self) -> bool:
        # an empty path means "not configured"; Path("") would resolve to the cwd
        candidates = [path for path in (self._path, self._fallback_path) if path.strip()]
        return any(Path(path).exists() for path in candidates)

    async def is_connected(self) -> bool:
        try:
            status = await self.get_status()
        except Exception as exc:  # noqa: BLE001
            self._logger.debug(
                "tailscale.connected.unknown",
                "Status unavailable; reporting disconnected",
                error=str(exc),
            )
            return False
        return status.online

    async def list_devices(self) -> List[DeviceRecord]:
        async with self._logger.operation("tailscale.devices", "Listing Tailscale devices") as op:
            snapshot = await self._fetch_snapshot(action="devices")
            devices = project_devices(snapshot)
            op.step("project", "Tailscale devices listed", count=len(devices))
            return devices

    async def _fetch_snapshot(self, *, action: str) -> StatusSnapshot:
        output = await self._execute(STATUS_ARGS, action=action)
        try:
            return decode_status(output)
        except TailscaleError:
            record_tailscale_operation(action=f"{action}.decode", ok=False)
            raise

    async def _execute(self, args: Iterable[str], *, action: str) -> str:
        arg_list = list(args)
        self._logger.debug(
            "tailscale.command.start",
            "Executing tailscale command",
            command=" ".join([self._path, *arg_list]),
        )
        started = perf_counter()
        try:
            with track_in_flight():
                result = await self._runner(
                    self._path,
                    tuple(arg_list),
                    output_limit_bytes=self._settings.output_limit_bytes,
                    timeout_seconds=self._settings.timeout,
                )
        except TailscaleError as exc:
            record_tailscale_operation(action=action, ok=False)
            self._logger.warning(
                "tailscale.command.fail",
                "tailscale command could not be executed",
                action=action,
                args=" ".join(arg_list),
                error=exc.description,
            )
            raise
        finally:
            observe_tailscale_command(action=action, duration_seconds=perf_counter() - started)

        if not result.exit_success:
            record_tailscale_operation(action=action, ok=False)
            self._logger.warning(
                "tailscale.command.fail",
                "tailscale command failed",
                action=action,
                args=" ".join(arg_list),
                exit_code=result.exit_code,
                stderr=result.stderr.strip(),
            )
            raise classify_exit(result)
        record_tailscale_operation(action=action, ok=True)
        self._logger.debug(
            "tailscale.command.ok",
            "tailscale command succeeded",
            action=action,
            args=" ".join(arg_list),
            truncated=result.truncated,
        )
        return result.stdout
