"""Repositories: one class per table family, explicit SQL, no commits."""
