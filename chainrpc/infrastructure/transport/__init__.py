from chainrpc.infrastructure.transport.jsonrpc_client import (
    JsonRpcTransport,
    TransportConfig,
    decode_quantity,
    encode_block,
)

__all__ = ["JsonRpcTransport", "TransportConfig", "decode_quantity", "encode_block"]
