"""Chat request gateway.

Architectural role:
    Stateless proxy between a browser chat client and a hosted language/image
    model API. One inbound request is dispatched to text completion or image
    synthesis and answered with one normalized response envelope.

Package split:
    - `core`: request types, mode selection, configuration guard, error
      classification, envelope building, and the engine control flow.
    - `llm`: configuration loading plus the text-completion transport.
    - `image`: image-job submit/poll transport and orchestration.
    - `api`: HTTP (FastAPI) and terminal entrypoints.
"""
