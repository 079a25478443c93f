"""SQLite storage: connection, schema, migrations and repositories."""
