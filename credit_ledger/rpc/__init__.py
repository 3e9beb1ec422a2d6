"""Production collaborators over the settlement gateway's JSON-RPC."""
from .bank import RpcTokenBank
from .client import JsonRpcClient
from .clock import RpcStepClock
from .market import RpcMarketAdapter
from .venue import RpcSwapVenue

__all__ = [
    "JsonRpcClient",
    "RpcMarketAdapter",
    "RpcStepClock",
    "RpcSwapVenue",
    "RpcTokenBank",
]
