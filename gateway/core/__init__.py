"""Core orchestration package.

Architectural role:
    Holds the request pipeline that sits between the HTTP/CLI entrypoints and
    the text and image adapters.

Composition:
    - `gateway_types`: per-request data contracts.
    - `mode_selector`: explicit-flag route selection.
    - `config_guard`: per-route configuration check.
    - `error_classifier`: failure taxonomy and remediation hints.
    - `envelope`: user-facing response construction.
    - `engine`: main control flow.

Determinism and side effects:
    Package import itself is side-effect free. Network I/O happens only inside
    `engine.process_request`.
"""
