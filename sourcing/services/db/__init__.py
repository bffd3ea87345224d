# Database services
from .supabase_client import SupabaseClient, is_duplicate_error
from .repository import ArtifactTracker, RecordRepository

__all__ = [
    "SupabaseClient",
    "is_duplicate_error",
    "ArtifactTracker",
    "RecordRepository",
]
