"""Stateless handles for the lab's remote services.

Resolving a handle only validates the address; reachability problems
surface from the operation calls.
"""

from labctl.remote.agent import Agent, resolve_agent
from labctl.remote.app import App, resolve_app
from labctl.remote.models import PeerInfo, Task

__all__ = [
    "Agent",
    "App",
    "PeerInfo",
    "Task",
    "resolve_agent",
    "resolve_app",
]
