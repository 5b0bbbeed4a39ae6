"""Text-completion access package.

Architectural role:
    Provides gateway configuration, request-payload construction, and the HTTP
    transport used by the engine to invoke the chat-completion deployment.

Module split:
    - `provider_config`: environment-driven `GatewayConfig` and fixed defaults.
    - `service`: conversation-to-payload adapter.
    - `client`: chat-completion HTTP transport and response parsing.
"""
