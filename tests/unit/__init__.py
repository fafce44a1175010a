"""Unit tests for individual components in isolation.

Coverage:
    - auth/: token freshness, single-flight refresh, Appwrite adapter
    - chat/: SSE framing, event decoding, turn reducer, conversation store
    - upload/: file validation
    - config: environment loading and validation

Leverages pytest-check for multiple assertions per test.
"""
