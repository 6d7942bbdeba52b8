"""
evmequiv Constants

This module consolidates protocol constants and the environment configuration
used throughout the codebase. Constants are organized by category for easy
reference and maintenance.
"""
import ast
from dotenv import dotenv_values

# =============================================================================
# ENVIRONMENT CONFIGURATION
# =============================================================================
# Load environment variables once at module import
_config = dotenv_values(".env")

CLIENT_DEFAULTS = {
    'EVMEQUIV_RPC_URL':                'http://127.0.0.1:3050',
    'EVMEQUIV_RPC_TIMEOUT':            '10.0',
    'EVMEQUIV_LENGTH_POLICY':          'strict',
}

LOGGER_DEFAULTS = {
    'LOG_LEVEL':                       'INFO',
    'LOG_FORMAT':                      '%(asctime)s - %(levelname)s - %(name)s - %(message)s',
    'LOG_DATE_FORMAT':                 '%Y-%m-%dT%H:%M:%S',
    'LOG_CONSOLE_HIGHLIGHTING':        'True',
    'LOG_OUTPUT':                      'plain',
    'LOG_FILE_OUTPUT':                 'False',
}

LOG_MAX_FILE_SIZE = 10 * 1024 * 1024 # 10MB
LOG_BACKUP_COUNT = 5


# ==================================================================================
# SYSTEM CONTRACTS
# ==================================================================================
# Stores the code hash of every account, keyed by the left-padded account address
ACCOUNT_CODE_STORAGE_ADDRESS = '0x0000000000000000000000000000000000008002'
CONTRACT_DEPLOYER_ADDRESS = '0x0000000000000000000000000000000000008006'


# ==================================================================================
# BLOB HASH FORMAT
# ==================================================================================
# Layout: [version][reserved][length hi][length lo][sha256(blob)[4:32]]
BLOB_HASH_SIZE = 32
BLOB_HASH_VERSION = 0x02
BLOB_HASH_RESERVED = 0x00
MAX_BLOB_LENGTH = 0xFFFF
ZERO_HASH = bytes(BLOB_HASH_SIZE)

ADDRESS_SIZE = 20
STORAGE_SLOT_SIZE = 32

LENGTH_POLICIES = ('strict', 'wrap')


# ==================================================================================
# EVENT TOPICS
# ==================================================================================
# ContractDeployed(address indexed deployerAddress, bytes32 indexed bytecodeHash, address indexed contractAddress)
CONTRACT_DEPLOYED_TOPIC = '0x290afdae231a3fc0bbae8b1af63698b0a1d79b21ad17df0342dfb952fe74f8e5'

# Emitted by the EVM interpreter when cost tracing is compiled in
OVERHEAD_COST_TOPIC = '0x63307236653da06aaa7e128a306b128c594b4cf3b938ef212975ed10dad17515'
OPCODE_COST_TOPIC = '0xca5a69edf1b934943a56c00605317596b03e2f61c3f633e8657b150f102a3dfa'

# Opcodes listed in gas cost reports even when no samples were recorded
TRACKED_OPCODES = (
    tuple(range(0x00, 0x0C))
    + tuple(range(0x10, 0x1E))
    + (0x20,)
    + tuple(range(0x30, 0x49))
    + tuple(range(0x50, 0x5C))
    + tuple(range(0x5F, 0xA5))
    + (0xF0, 0xF1, 0xF2, 0xF3, 0xF4, 0xF5, 0xFA, 0xFD, 0xFE, 0xFF)
)


# ==================================================================================
# CONFIGURATION WRAPPERS
# ==================================================================================
class ConfigString(str):
    """
    String subclass that stores a default value.
    """
    def __new__(cls, value, default):
        obj = str.__new__(cls, value)
        obj._default = default
        return obj

    def default(self):
        return self._default

class ConfigBool(int):
    """
    Int subclass acting as a boolean that stores a default value.
    """
    def __new__(cls, value, default):
        obj = int.__new__(cls, bool(value))
        obj._default = default
        return obj

    def default(self):
        return self._default

    def __repr__(self):
        return str(bool(self))

    def __str__(self):
        return str(bool(self))

    def __eq__(self, other):
        return bool(self) == other

    __hash__ = int.__hash__


# ==================================================================================
# DYNAMIC CONFIGURATION LOADING
# ==================================================================================
DEFAULTS = CLIENT_DEFAULTS | LOGGER_DEFAULTS
namespace = globals()

def parse_bool(v):
    """
    Convert "True"/"False" (any casing, with surrounding whitespace) into bool.
    Avoids exceptions by only calling ast.literal_eval for known literals.
    """
    if not isinstance(v, str):
        return v
    s = v.strip()
    if not s:
        return v
    if s.casefold() in {"true", "false"}:
        # ast.literal_eval expects "True"/"False"
        return ast.literal_eval(s.title())
    return v

for key, default_raw in DEFAULTS.items():
    # dotenv_values returns strings or None. None is treated as missing.
    raw = _config.get(key)
    value_raw = default_raw if raw is None else raw

    # Parses only boolean-literals. Leaves other values untouched.
    value = parse_bool(value_raw)
    default_val = parse_bool(default_raw)

    if isinstance(value, bool):
        namespace[key] = ConfigBool(value, default_val)
    else:
        namespace[key] = ConfigString(value, default_val)
