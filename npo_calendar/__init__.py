"""NPO Calendar: event access and recurrence service."""
