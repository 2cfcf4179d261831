"""Core building blocks: models, configuration, errors and logging."""
