"""
evmequiv Package

Versioned code blob hashing and on-chain deployment verification.

Core imports are lazily loaded so that hashing does not pull in the HTTP stack:

    from evmequiv.crypto import blob_hash
    from evmequiv.verifier import verify_deployed, verify_not_deployed
    from evmequiv.rpc import JsonRpcClient
"""

__version__ = "0.1.0"

_LAZY = {
    'blob_hash': ('.crypto.hashing', 'blob_hash'),
    'blob_hash_hex': ('.crypto.hashing', 'blob_hash_hex'),
    'verify_deployed': ('.verifier', 'verify_deployed'),
    'verify_not_deployed': ('.verifier', 'verify_not_deployed'),
    'DeploymentVerifier': ('.verifier', 'DeploymentVerifier'),
    'VerificationResult': ('.verifier', 'VerificationResult'),
    'JsonRpcClient': ('.rpc.client', 'JsonRpcClient'),
    'GasCostAccumulator': ('.gas_costs', 'GasCostAccumulator'),
}


def __getattr__(name):
    """Lazy module loading."""
    if name in _LAZY:
        from importlib import import_module
        module_name, attr = _LAZY[name]
        return getattr(import_module(module_name, __name__), attr)
    raise AttributeError(f"module 'evmequiv' has no attribute {name!r}")

__all__ = ['__version__', *_LAZY]
