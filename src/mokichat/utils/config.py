# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Moki Contributors
# Part of mokichat — see LICENSE
# Refs: EIP-191; SCALE-Codec; NIST-800-38D-AES-GCM

'''
=============================================================================
 -------- !!! WIRE-COMPATIBILITY REMINDER - READ BEFORE EDITING !!! --------
=============================================================================

The values below **MUST MATCH** the relay and every other client.
Changing them produces messages that peers cannot parse or decrypt.

  1) CHAIN IDENTITY
   - CHAIN_ID_MAINNET, OP_CODE_CREATE_IDENTITY
   - ADDRESS_BYTES, SIGNATURE_BYTES

  2) MESSAGE WIRE FORMAT
   - MESSAGE_TYPE_TEXT, SUPPORTED_MESSAGE_TYPES
   - AES_NONCE_BYTES, AES_TAG_BYTES
   - TIMESTAMP_ID_BYTES, MESSAGE_ID_SUFFIX_LEN
   - AUTHORIZATION_TYPE

NOT WIRE (safe to differ between clients):
   rpc url/timeout, poll interval, identity cache policy, logging/path.

=============================================================================
'''

import os
import appdirs


# =============================================================================
# 1. MODE & APPLICATION
# =============================================================================
# ---- RUNTIME PROFILE ----
MODE   = "dev"  # default runtime profile, switch to "prod" for the live relay
IS_DEV = (MODE.lower() == "dev")  # cached boolean to simplify dev/prod toggles

# ---- APP METADATA ----
APP_NAME      = "mokichat"  # name used for user data directories
APP_AUTHOR    = "Moki"  # vendor string passed into platform dir helpers
USER_DATA_DIR = appdirs.user_data_dir(APP_NAME, APP_AUTHOR)  # OS-specific data folder resolved via appdirs
USER_LOG_DIR  = appdirs.user_log_dir(APP_NAME, APP_AUTHOR)  # OS-specific log folder resolved via appdirs


# =============================================================================
# 2. CHAIN IDENTITY
# =============================================================================
# ---- IDENTITY CONSTANTS ----
CHAIN_ID_MAINNET        = 6654  # chain id advertised in identity payloads
OP_CODE_CREATE_IDENTITY = 1  # op code of an identity creation record

# ---- KEY & ADDRESS SIZES ----
PRIVATE_KEY_BYTES         = 32  # raw secp256k1 scalar length
PUBKEY_COMPRESSED_BYTES   = 33  # SEC1 compressed point length
PUBKEY_UNCOMPRESSED_BYTES = 65  # SEC1 uncompressed point length (0x04 || X || Y)
ADDRESS_BYTES             = 20  # keccak-derived account address length
SIGNATURE_BYTES           = 65  # recoverable signature length (r || s || v)


# =============================================================================
# 3. MESSAGE WIRE FORMAT
# =============================================================================
# ---- MESSAGE TYPES ----
MESSAGE_TYPE_TEXT       = 0x00  # encrypted UTF-8 text message
SUPPORTED_MESSAGE_TYPES = (MESSAGE_TYPE_TEXT,)  # discriminants accepted by the verifier

# ---- AEAD LAYOUT ----
SHARED_SECRET_BYTES = 32  # sha256 of the compressed ECDH point, used as AES-256 key
AES_NONCE_BYTES     = 12  # GCM nonce prepended to every ciphertext
AES_TAG_BYTES       = 16  # 128-bit GCM tag, placed between nonce and ciphertext on the wire

# ---- AUTHORIZATION HEADER ----
AUTHORIZATION_TYPE = "AUTHORIZE"  # authorization_type tag for chat fetches
TIMESTAMP_ID_BYTES = 6  # big-endian millisecond timestamp width
TIMESTAMP_ID_MAX   = 1 << (8 * TIMESTAMP_ID_BYTES)  # exclusive upper bound for timestamp_id

# ---- MESSAGE IDS ----
MESSAGE_ID_SUFFIX_LEN = 10  # trailing non-timestamp characters of a relay message id


# =============================================================================
# 4. RPC
# =============================================================================
# ---- ENDPOINTS ----
RPC_URL_DEV  = "http://127.0.0.1:8545"  # local relay for development
RPC_URL_PROD = "https://rpc.moki.chat"  # production relay
RPC_URL      = RPC_URL_DEV if IS_DEV else RPC_URL_PROD  # active relay chosen from MODE

# ---- CLIENT BEHAVIOUR ----
RPC_TIMEOUT      = 15.0  # HTTP timeout per JSON-RPC call (seconds)
RPC_MIN_INTERVAL = 0.0  # minimum spacing between consecutive calls (seconds), 0 disables pacing
RPC_USER_AGENT   = "mokichat/0.1"  # UA string sent with every request


# =============================================================================
# 5. CHAT POLLING
# =============================================================================
CHAT_POLL_INTERVAL_MS = 5000  # fixed delay between watch iterations
CHAT_WATCH_JOIN_S     = 2.0  # default join timeout used by the CLI when stopping a watcher


# =============================================================================
# 6. IDENTITY CACHE
# =============================================================================
# ---- POLICY ----
IDENTITY_CACHE_BACKEND     = "memory"  # "memory" (session only) or "lmdb" (persistent)
IDENTITY_CACHE_MAX_ENTRIES = None  # None keeps every identity for the session
IDENTITY_CACHE_TTL_S       = None  # None never expires a cached identity

# ---- KV BACKEND ----
DB_DIR             = os.path.join(USER_DATA_DIR, "DB")  # LMDB root folder
KV_IDENTITY_DB     = "identities"  # LMDB sub-database holding identity records
LMDB_MAP_SIZE_INIT = 8 * 1024 * 1024  # initial LMDB map size (8 MiB)
LMDB_MAP_SIZE_MAX  = 1024 * 1024 * 1024  # upper LMDB map cap (1 GiB)


# =============================================================================
# 7. LOGGING
# =============================================================================
# ---- BASE OUTPUT ----
LOG_PATH             = os.path.join(USER_LOG_DIR, "mokichat.log")  # canonical log file path before format-specific override
LOG_SHOW_PROCESS     = False  # include process metadata in log context when True
LOG_PROC_PLACEHOLDER = "-"  # value used when process info is hidden

# ---- MODE PROFILES ----
if IS_DEV:
    # ---- DEV PROFILE ----
    LOG_LEVEL                   = "DEBUG"  # verbose logging for development
    LOG_FORMAT                  = "plain"  # plain text logs ease local debugging
    LOG_TO_CONSOLE              = True  # mirror logs to stderr for dev loops
    LOG_TO_FILE                 = False  # keep dev runs from littering the user log dir
    LOG_RATE_LIMIT_SECONDS      = 0.0  # disable console throttling in dev
    LOG_FILE_RATE_LIMIT_SECONDS = 0.0  # disable file throttling in dev
    LOG_ROTATE_MAX_BYTES        = 2_000_000  # rollover log files after ~2MB in dev
    LOG_BACKUP_COUNT            = 2  # retain a few rotated dev log files
else:
    # ---- PROD PROFILE ----
    LOG_LEVEL                   = "INFO"  # balanced verbosity for production
    LOG_FORMAT                  = "json"  # JSON logs simplify ingestion in prod
    LOG_TO_CONSOLE              = False  # keep host applications' stderr clean
    LOG_TO_FILE                 = True  # persist logs in the user log dir
    LOG_RATE_LIMIT_SECONDS      = 2.0  # throttle console spam in prod
    LOG_FILE_RATE_LIMIT_SECONDS = 1.0  # throttle file spam in prod
    LOG_ROTATE_MAX_BYTES        = 5_000_000  # rollover log files after ~5MB in prod
    LOG_BACKUP_COUNT            = 5  # keep more history in production

# ---- LOG PATH NORMALIZATION ----
try:
    _LOG_BASE = os.path.join(USER_LOG_DIR, "mokichat")  # base path used to pick extension
    _fmt      = str(LOG_FORMAT).lower().strip()  # normalized log format string

    if _fmt == "json":
        LOG_PATH = _LOG_BASE + ".jsonl"  # JSON lines extension to aid parsing
    else:
        LOG_PATH = _LOG_BASE + ".log"  # plain-text log extension fallback
except Exception:
    pass  # keep the default path if normalization fails
