"""
Action Plan Service - HTTP API
==============================
"""
