"""Domain services: the lesson pipeline, scoring, sessions, access checks and quotas."""
