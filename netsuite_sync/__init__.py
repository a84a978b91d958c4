"""NetSuite to Supabase author synchronization."""
