"""Application services: question correlation and the tool surface."""
