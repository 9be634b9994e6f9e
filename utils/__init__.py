"""
Utility helpers for the Drip client
"""
