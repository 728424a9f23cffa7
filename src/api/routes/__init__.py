"""API route handlers for local-container-endpoints.

Routes:
- metadata: /v3, /v3/task, /v3/stats, /v3/containers/{identifier}/...
- health: /health, /health/ready
"""

__all__: list[str] = []
