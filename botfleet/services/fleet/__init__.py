"""Fleet management: registry, routing, supervision."""

from botfleet.services.fleet.policy import RestartPolicy
from botfleet.services.fleet.registry import FleetRegistry
from botfleet.services.fleet.router import RoutingPolicy, SessionRouter
from botfleet.services.fleet.supervisor import ConnectionSupervisor, LiveConnection

__all__ = [
    "ConnectionSupervisor",
    "FleetRegistry",
    "LiveConnection",
    "RestartPolicy",
    "RoutingPolicy",
    "SessionRouter",
]
