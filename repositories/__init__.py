"""Persistence layer: Supabase table access and row <-> domain mapping."""
