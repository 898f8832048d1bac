"""Post-installation fixes for the GlobalProtect VPN client on Linux."""

__version__ = "1.0.0"
