"""local-container-endpoints: ECS metadata endpoints for local containers.

Serves task metadata v3 style responses to containers running on a local
Docker host, identifying each caller by container ID, name or source IP.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
