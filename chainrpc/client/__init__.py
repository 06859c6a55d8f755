from chainrpc.client.calldata import decode_address, decode_uint, encode_call
from chainrpc.client.operations import (
    BatchRead,
    GetBalance,
    GetBlock,
    GetChainHead,
    GetLogs,
    GetTransaction,
    GetTransactionReceipt,
    Operation,
    ReadState,
    dispatch_operation,
)
from chainrpc.client.rpc_client import ResilientRpcClient

__all__ = [
    "BatchRead",
    "GetBalance",
    "GetBlock",
    "GetChainHead",
    "GetLogs",
    "GetTransaction",
    "GetTransactionReceipt",
    "Operation",
    "ReadState",
    "ResilientRpcClient",
    "decode_address",
    "decode_uint",
    "dispatch_operation",
    "encode_call",
]
