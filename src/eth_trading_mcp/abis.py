"""Minimal contract ABIs and Uniswap mainnet addresses."""

UNISWAP_V2_FACTORY = "0x5C69bEe701ef814a2B6a3EDD4B1652CB9cc5aA6f"
UNISWAP_V2_ROUTER = "0x7a250d5630B4cF539739dF2C5dAcb4c659F2488D"
UNISWAP_V3_FACTORY = "0x1F98431c8aD98523631AE4a59f267346ea31F984"
UNISWAP_V3_SWAP_ROUTER = "0xE592427A0AEce92De3Edee1F18E0157C05861564"

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def _view(name, inputs, outputs):
    return {
        "name": name,
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": n, "type": t} for n, t in inputs],
        "outputs": [{"name": n, "type": t} for n, t in outputs],
    }


ERC20_ABI = [
    _view("balanceOf", [("owner", "address")], [("balance", "uint256")]),
    _view("decimals", [], [("", "uint8")]),
    _view("symbol", [], [("", "string")]),
]

# Some early tokens (MKR, SAI) return symbol as bytes32.
ERC20_BYTES32_SYMBOL_ABI = [
    _view("symbol", [], [("", "bytes32")]),
]

UNISWAP_V2_FACTORY_ABI = [
    _view("getPair", [("tokenA", "address"), ("tokenB", "address")], [("pair", "address")]),
]

UNISWAP_V2_PAIR_ABI = [
    _view(
        "getReserves",
        [],
        [
            ("reserve0", "uint112"),
            ("reserve1", "uint112"),
            ("blockTimestampLast", "uint32"),
        ],
    ),
    _view("token0", [], [("", "address")]),
]

_V2_SWAP_TAIL = [
    {"name": "path", "type": "address[]"},
    {"name": "to", "type": "address"},
    {"name": "deadline", "type": "uint256"},
]

UNISWAP_V2_ROUTER_ABI = [
    {
        "name": "swapExactTokensForTokens",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "amountIn", "type": "uint256"},
            {"name": "amountOutMin", "type": "uint256"},
            *_V2_SWAP_TAIL,
        ],
        "outputs": [{"name": "amounts", "type": "uint256[]"}],
    },
    {
        "name": "swapExactETHForTokens",
        "type": "function",
        "stateMutability": "payable",
        "inputs": [{"name": "amountOutMin", "type": "uint256"}, *_V2_SWAP_TAIL],
        "outputs": [{"name": "amounts", "type": "uint256[]"}],
    },
    {
        "name": "swapExactTokensForETH",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "amountIn", "type": "uint256"},
            {"name": "amountOutMin", "type": "uint256"},
            *_V2_SWAP_TAIL,
        ],
        "outputs": [{"name": "amounts", "type": "uint256[]"}],
    },
]

UNISWAP_V3_FACTORY_ABI = [
    _view(
        "getPool",
        [("tokenA", "address"), ("tokenB", "address"), ("fee", "uint24")],
        [("pool", "address")],
    ),
]

UNISWAP_V3_POOL_ABI = [
    _view(
        "slot0",
        [],
        [
            ("sqrtPriceX96", "uint160"),
            ("tick", "int24"),
            ("observationIndex", "uint16"),
            ("observationCardinality", "uint16"),
            ("observationCardinalityNext", "uint16"),
            ("feeProtocol", "uint8"),
            ("unlocked", "bool"),
        ],
    ),
    _view("liquidity", [], [("", "uint128")]),
    _view("token0", [], [("", "address")]),
]

UNISWAP_V3_SWAP_ROUTER_ABI = [
    {
        "name": "exactInputSingle",
        "type": "function",
        "stateMutability": "payable",
        "inputs": [
            {
                "name": "params",
                "type": "tuple",
                "components": [
                    {"name": "tokenIn", "type": "address"},
                    {"name": "tokenOut", "type": "address"},
                    {"name": "fee", "type": "uint24"},
                    {"name": "recipient", "type": "address"},
                    {"name": "deadline", "type": "uint256"},
                    {"name": "amountIn", "type": "uint256"},
                    {"name": "amountOutMinimum", "type": "uint256"},
                    {"name": "sqrtPriceLimitX96", "type": "uint160"},
                ],
            }
        ],
        "outputs": [{"name": "amountOut", "type": "uint256"}],
    },
]
