from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

# Field names mirror the `tailscale status --json` document verbatim.
_WIRE_CONFIG = ConfigDict(
    strict=True,
    frozen=True,
    extra="ignore",
    populate_by_name=False,
)


class SelfNode(BaseModel):
    model_config = _WIRE_CONFIG

    public_key: str = Field(alias="PublicKey")
    host_name: str = Field(alias="HostName")


class PeerEntry(BaseModel):
    model_config = _WIRE_CONFIG

    host_name: str = Field(alias="HostName")
    online: bool = Field(alias="Online")
    addresses: List[str] = Field(alias="TailscaleIPs")
    os: str = Field(alias="OS")

    @property
    def first_address(self) -> str:
        return self.addresses[0] if self.addresses else ""


class StatusSnapshot(BaseModel):
    model_config = _WIRE_CONFIG

    self_node: SelfNode = Field(alias="Self")
    peers: Dict[str, PeerEntry] = Field(alias="Peer")

    @property
    def self_peer(self) -> Optional[PeerEntry]:
        return self.peers.get(self.self_node.public_key)
