"""Rare Disease Assistant - streaming chat client for clinical rare disease analysis.

Combines httpx for Server-Sent Events streaming, Pydantic for data
validation, NiceGUI for visualization, and FastAPI as the hosting app.

Components:
    - auth: credential provider adapter and bearer token cache
    - chat: event decoding, turn state machine, conversation store, session controller
    - upload: file validation and upload sidecar
    - ui: web interface for chat interactions
    - api: hosting application and lifecycle
    - models: shared message and wire schemas
"""

__version__ = "0.1.0"
