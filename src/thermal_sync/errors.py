from __future__ import annotations


class SyncError(Exception):
    """Base class for everything the sync cycle knows how to recover from (or not)."""


class DiscoveryInitError(SyncError):
    """
    The DNS-SD backend could not be started on this host.

    Fatal: the agent has no way to find cameras without it.
    """


class TransportError(SyncError):
    """Network-level failure talking to a device (refused, reset, timed out...)."""


class ProtocolError(SyncError):
    """Device answered, but with a non-200 status or a body we cannot use."""


class StorageError(SyncError, OSError):
    """Local file could not be created or fully written."""
