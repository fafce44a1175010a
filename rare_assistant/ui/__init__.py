"""NiceGUI interface - thin visualization layer for chat interactions.

Responsibilities:
    - Chat message display with streaming thinking steps and citations
    - File upload list backed by the upload sidecar
    - Appwrite sign-in page

Contains minimal business logic. Reads conversation state from the store
and hands user actions to the session controller.
"""
