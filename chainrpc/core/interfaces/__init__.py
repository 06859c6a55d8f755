from .transport import BlockTag, RpcTransport

__all__ = ["BlockTag", "RpcTransport"]
