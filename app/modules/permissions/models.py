# Supabase tables: user_roles, system_settings
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py and core/dependencies.py

"""
Expected Supabase table structure:

user_roles:
- id: uuid (primary key)
- user_id: uuid (foreign key to profiles.id, not null)
- role: app_role enum (admin | manager | staff | customer)

system_settings:
- id: uuid (primary key)
- key: text (not null, unique) - e.g., "role_permissions"
- value: jsonb (not null) - for role_permissions:
    {"admin": [{"resource": "Complaints", "view": true, "create": true, "edit": true, "delete": true}, ...], ...}
- updated_at: timestamp (nullable)
- updated_by: uuid (nullable)
"""
