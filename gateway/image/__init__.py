"""Image generation adapter package.

Scope:
    Submits text-to-image jobs to the configured image deployment and drives
    asynchronous jobs to a terminal state for `gateway.core.engine`.

Non-goals:
    - No image download, Base64 decoding, or storage.
    - No prompt rewriting or intent detection.
"""
