"""Services for local-container-endpoints.

Services:
- resolver: match a request to the container that sent it
- metadata: tag maps and metadata payloads
- docker_client: read-only Docker snapshots and stats
"""

__all__: list[str] = []
