"""
Launchpad Database Layer

This module provides the Supabase client and service classes for
interacting with the database.
"""

from .client import get_supabase_admin_client, verify_supabase_connection, SupabaseClientError
from .jobs import JobStore
from .funnels import FunnelService, PRODUCT_LEVELS
from .lead_magnets import LeadMagnetService
from .knowledge import KnowledgeService
from .email_sequences import EmailSequenceService

__all__ = [
    "verify_supabase_connection",
    "get_supabase_admin_client",
    "SupabaseClientError",
    "JobStore",
    "FunnelService",
    "PRODUCT_LEVELS",
    "LeadMagnetService",
    "KnowledgeService",
    "EmailSequenceService",
]
