"""
Core blockchain constants.

This module contains:
- ERC-20 ABI subset used for payouts
- Spend permission struct and function signatures
- Gas settings
"""

# ERC-20 ABI (functions used by payouts and balance checks)
ERC20_ABI = [
    {
        "constant": True,
        "inputs": [{"name": "_owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "balance", "type": "uint256"}],
        "type": "function",
    },
    {
        "constant": False,
        "inputs": [
            {"name": "_to", "type": "address"},
            {"name": "_value", "type": "uint256"},
        ],
        "name": "transfer",
        "outputs": [{"name": "", "type": "bool"}],
        "type": "function",
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "name": "from", "type": "address"},
            {"indexed": True, "name": "to", "type": "address"},
            {"indexed": False, "name": "value", "type": "uint256"},
        ],
        "name": "Transfer",
        "type": "event",
    },
]

# SpendPermission(account, spender, token, allowance, period, start, end, salt, extraData)
SPEND_PERMISSION_TUPLE = (
    "(address,address,address,uint160,uint48,uint48,uint48,uint256,bytes)"
)
APPROVE_WITH_SIGNATURE_SIGNATURE = (
    f"approveWithSignature({SPEND_PERMISSION_TUPLE},bytes)"
)
SPEND_SIGNATURE = f"spend({SPEND_PERMISSION_TUPLE},uint160)"

# uint160 max, the allowance field width
MAX_UINT160 = 2**160 - 1

# Gas
GAS_LIMIT_MULTIPLIER = 1.2
DEFAULT_TRANSFER_GAS_LIMIT = 100_000
DEFAULT_CALL_GAS_LIMIT = 300_000

# Warn when this many operator transactions are pending
NONCE_STUCK_THRESHOLD = 5
