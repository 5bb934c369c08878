"""Core constants: reserved namespaces and internal collection names.

Internal collections start with an underscore so they can never collide with
user collections (which must start with a lowercase letter).
"""

# Platform namespace; sanitized project names can never start with "system".
SYSTEM_NAMESPACE = "system"
PROJECTS_COLLECTION = "projects"

# Per-project internal collections
METADATA_COLLECTION = "_collections"
TASKS_COLLECTION = "_tasks"
TRIGGERS_COLLECTION = "_triggers"

# Firestore-style resource path pieces
DATABASE_ID = "(default)"
