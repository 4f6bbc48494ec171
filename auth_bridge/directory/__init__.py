"""Account directory clients."""

from auth_bridge.directory.base import AccountDirectory
from auth_bridge.directory.memory import InMemoryAccountDirectory
from auth_bridge.directory.supabase import SupabaseAccountDirectory

__all__ = ["AccountDirectory", "InMemoryAccountDirectory", "SupabaseAccountDirectory"]
