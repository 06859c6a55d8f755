"""
Infrastructure Layer

- **cache/**: In-process TTL response cache
- **monitoring/**: Periodic endpoint health probing
- **transport/**: JSON-RPC over HTTP (httpx)
"""
