"""docbase: multi-tenant document database API with a task execution engine."""
