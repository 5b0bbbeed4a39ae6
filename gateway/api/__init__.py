"""Interface adapters for the chat gateway.

Modules:
- `http_api`: FastAPI endpoint consumed by the browser chat client.
- `cli`: terminal client for operators.

Both adapters build one `GatewayConfig` at startup and hand it to
`gateway.core.engine.process_request`.
"""
