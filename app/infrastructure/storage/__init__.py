"""Document storage engines (in-memory, Firestore REST)."""
