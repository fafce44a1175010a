"""Integration tests for components working together as a system.

Coverage:
    - Session controller turns against a fake analysis service
    - Upload sidecar against a fake upload endpoint
    - Hosting app health check and shutdown

The fake services run in-process behind httpx transports; no network
access or credentials are required.
"""
