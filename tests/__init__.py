"""Test package for the Rare Disease Assistant client.

Structure:
    - unit/: token cache, decoder, reducer, store and validation tests
    - integration/: session controller, upload and hosting app flows
    - fakes.py: fake credential provider and analysis service

Integration tests run against in-process fakes through httpx transports,
so no network access or credentials are needed.
"""
