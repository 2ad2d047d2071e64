"""Domain services: expense rules, aggregate maintenance, ownership, read models."""
