"""
API client layer for the Drip client library

HTTP client for the Drip v2 REST API.
"""
from .client import DripClient, get_drip_client

__all__ = ['DripClient', 'get_drip_client']
