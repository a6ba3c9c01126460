from pydantic import BaseModel, ConfigDict, Field, IPvAnyAddress
from typing import Dict, Any


class Meta(BaseModel):
    name: str
    version: str
    date: str


class Ethernet(BaseModel):
    interface: str = "eth0"
    hostname: str = "echo"
    sysfs_net_path: str = "/sys/class/net"


class DHCPClient(BaseModel):
    binary: str
    script_path: str


class IP4LL(BaseModel):
    retry_interval: float = Field(gt=0)


class Paths(BaseModel):
    static_ip_config: str


class ManagerTimeouts(BaseModel):
    worker_get: float
    worker_join: float


class Manager(BaseModel):
    inbox_size: int
    timeouts: ManagerTimeouts


class RemoteControlTimeouts(BaseModel):
    socket: float
    worker_join: float


class RemoteControl(BaseModel):
    enabled: bool
    host: IPvAnyAddress
    port: int = Field(gt=0, lt=65536)
    device_port: int = Field(gt=0, lt=65536)
    root_path: str = "/"
    msg_size: int
    timeouts: RemoteControlTimeouts


class Indicator(BaseModel):
    led: str


class Logging(BaseModel):
    model_config = ConfigDict(extra="allow")

    version: int
    formatters: Dict[str, Dict[str, Any]]
    handlers: Dict[str, Dict[str, Any]]


class ConfigSchema(BaseModel):
    meta: Meta
    ethernet: Ethernet
    dhcp_client: DHCPClient
    ip4ll: IP4LL
    paths: Paths
    manager: Manager
    remote_control: RemoteControl
    indicator: Indicator
    logging: Logging
