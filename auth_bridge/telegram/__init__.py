"""Telegram WebApp helpers (initData parsing, signing and verification)."""

from auth_bridge.telegram.init_data import (
    build_data_check_string,
    compute_init_data_hash,
    derive_secret_key,
    parse_init_data,
    sign_init_data,
    validate_init_data,
)

__all__ = [
    "build_data_check_string",
    "compute_init_data_hash",
    "derive_secret_key",
    "parse_init_data",
    "sign_init_data",
    "validate_init_data",
]
