"""Core ec2runner functionality."""

from __future__ import annotations

from ec2runner.core.interfaces import InstanceLifecycle, InstanceProfiles, RemoteCommands

__all__ = [
    "InstanceLifecycle",
    "InstanceProfiles",
    "RemoteCommands",
]
