"""Clients for public space-data APIs (SpaceX, The Space Devs, Open Notify, NASA)."""

from .space_data import SpaceDataClient, UpstreamError, get_space_data_client

__all__ = ["SpaceDataClient", "UpstreamError", "get_space_data_client"]
